"""
Fetch and store localized details for one locale's unique products, in chunks.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from harvest.chunking import DEFAULT_CHUNK_SIZE, chunkify
from harvest.extractors.base import CatalogSource
from harvest.loaders.postgres_loader import PostgresLoader
from harvest.retry import RetryPolicy
from harvest.transformers.normalizer import GameNormalizer
from schemas.catalog import Locale
from core.exceptions import PreconditionError
import logging

logger = logging.getLogger(__name__)


@dataclass
class DetailResult:
    locale: Locale
    requested: int = 0
    chunks: int = 0
    chunks_done: int = 0
    games_fetched: int = 0
    descriptions_written: int = 0
    images_written: int = 0


class DetailHarvester:
    """
    Detail phase for a single locale.

    Chunks of one locale run strictly one after another; the runner runs
    several locales side by side. Any chunk failing after its retries stops
    the remaining chunks of the locale.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        loader: PostgresLoader,
        policy: RetryPolicy,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        normalizer: Optional[GameNormalizer] = None,
    ):
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise PreconditionError(
                "Chunk size must be a positive integer",
                context={"chunk_size": chunk_size}
            )
        self.catalog = catalog
        self.loader = loader
        self.policy = policy
        self.chunk_size = chunk_size
        self.normalizer = normalizer or GameNormalizer()

    async def harvest(self, locale: Locale, item_ids: Iterable[str]) -> DetailResult:
        """
        Raises:
            The last error of the first chunk step that exhausts its retries
        """
        ordered = sorted(set(item_ids))
        chunks = chunkify(ordered, self.chunk_size)
        result = DetailResult(locale=locale, requested=len(ordered), chunks=len(chunks))

        logger.info(
            f"Unique games for {locale}: {len(ordered)} in {len(chunks)} chunks",
            extra={"harvest_context": {"locale": locale.code, "count": len(ordered)}}
        )

        for index, chunk in enumerate(chunks, start=1):
            context = {
                "language": locale.language,
                "market": locale.market,
                "chunk": index,
                "chunks": len(chunks),
            }

            games = await self.policy.run(
                lambda: self.catalog.fetch_details(chunk, locale),
                description="Fetch product information",
                context=context,
            )
            batch = self.normalizer.normalize(games)

            result.descriptions_written += await self.policy.run(
                lambda: self.loader.write_descriptions(batch.descriptions, locale),
                description="Save game descriptions",
                context=context,
            )
            result.images_written += await self.policy.run(
                lambda: self.loader.write_images(batch.images, locale),
                description="Save game images",
                context=context,
            )

            result.games_fetched += len(games)
            result.chunks_done += 1
            if len(games) < len(chunk):
                logger.warning(
                    f"Catalog returned {len(games)} of {len(chunk)} requested products "
                    f"for {locale} (chunk {index}/{len(chunks)})"
                )

        logger.info(
            f"Detail harvest done for {locale}: {result.descriptions_written} descriptions, "
            f"{result.images_written} images"
        )
        return result
