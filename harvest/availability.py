"""
Fetch the members of one (collection, locale) pair.
"""

from harvest.extractors.base import CatalogSource
from harvest.retry import RetryPolicy
from schemas.catalog import GameCollection, Locale
import logging

logger = logging.getLogger(__name__)


class AvailabilityHarvester:
    """
    Ask the catalog which products a collection lists for a locale.

    Holds no shared state: results go back to the runner, which alone merges
    them into the per-locale dedupe set.
    """

    def __init__(self, catalog: CatalogSource, policy: RetryPolicy):
        self.catalog = catalog
        self.policy = policy

    async def harvest(self, collection_id: str, locale: Locale) -> GameCollection:
        """
        Raises:
            The catalog's last error once the retry policy is exhausted
        """
        item_ids = await self.policy.run(
            lambda: self.catalog.fetch_members(collection_id, locale),
            description="Fetch game collection",
            context={
                "collection_id": collection_id,
                "language": locale.language,
                "market": locale.market,
            },
        )

        logger.info(
            f"Collection {collection_id} lists {len(item_ids)} games for {locale}",
            extra={"harvest_context": {"collection_id": collection_id, "locale": locale.code, "count": len(item_ids)}}
        )
        return GameCollection(collection_id=collection_id, locale=locale, items=list(item_ids))
