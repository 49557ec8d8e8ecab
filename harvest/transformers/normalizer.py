"""
Turn catalog games into non-nullable description and image rows.

The sentinel policy lives here and nowhere else: optional text becomes "",
missing image dimensions become -1.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from schemas.catalog import DescriptionRecord, Game, ImageDescriptor, ImageRecord
import logging

logger = logging.getLogger(__name__)

EMPTY_TEXT = ""
MISSING_DIMENSION = -1


@dataclass
class NormalizedBatch:
    descriptions: List[DescriptionRecord] = field(default_factory=list)
    images: List[ImageRecord] = field(default_factory=list)


class GameNormalizer:
    """
    Normalize catalog games into rows ready for bulk upsert.

    Handles:
    - Sentinel defaults for optional fields
    - Type coercion of image dimensions
    - Collapsing rows that share a conflict key within one batch, since a
      single upsert statement cannot touch the same row twice
    """

    def normalize(self, games: Iterable[Game]) -> NormalizedBatch:
        descriptions: Dict[str, DescriptionRecord] = {}
        images: Dict[Tuple[str, str, str, str], ImageRecord] = {}

        for game in games:
            if game.product_id in descriptions:
                logger.debug(f"Duplicate product {game.product_id} in batch, keeping the last one")
            descriptions[game.product_id] = self.normalize_description(game)

            for image in self.normalize_images(game):
                key = (image.product_id, image.file_id, image.image_purpose, image.image_position_info)
                images[key] = image

        return NormalizedBatch(
            descriptions=list(descriptions.values()),
            images=list(images.values()),
        )

    def normalize_description(self, game: Game) -> DescriptionRecord:
        return DescriptionRecord(
            product_id=game.product_id,
            product_title=self._text(game.product_title),
            product_description=self._text(game.product_description),
            developer_name=self._text(game.developer_name),
            publisher_name=self._text(game.publisher_name),
            short_title=self._text(game.short_title),
            sort_title=self._text(game.sort_title),
            short_description=self._text(game.short_description),
        )

    def normalize_images(self, game: Game) -> List[ImageRecord]:
        return [
            self.normalize_image(game.product_id, descriptor)
            for descriptor in game.image_descriptors or []
        ]

    def normalize_image(self, product_id: str, descriptor: ImageDescriptor) -> ImageRecord:
        return ImageRecord(
            product_id=product_id,
            file_id=self._text(descriptor.file_id),
            height=self._dimension(descriptor.height),
            width=self._dimension(descriptor.width),
            uri=self._text(descriptor.uri),
            image_purpose=self._text(descriptor.image_purpose),
            image_position_info=self._text(descriptor.image_position_info),
        )

    @staticmethod
    def _text(value: Optional[Any]) -> str:
        if value is None:
            return EMPTY_TEXT
        return str(value)

    @staticmethod
    def _dimension(value: Any) -> int:
        """Safely parse a pixel dimension"""
        if value is None or value == "":
            return MISSING_DIMENSION
        try:
            return int(value)
        except (ValueError, TypeError):
            return MISSING_DIMENSION
