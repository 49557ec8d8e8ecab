from harvest.extractors.base import CatalogSource
from harvest.extractors.gamepass import GamePassCatalog

__all__ = ["CatalogSource", "GamePassCatalog"]
