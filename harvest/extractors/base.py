"""
Abstract catalog source: the two operations the pipeline depends on
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from schemas.catalog import Game, Locale


class CatalogSource(ABC):
    """
    Abstract base class for catalog services.

    Both operations may fail transiently; retrying is the caller's job.
    """

    @abstractmethod
    async def fetch_members(self, collection_id: str, locale: Locale) -> List[str]:
        """
        List the product ids of a collection.

        Args:
            collection_id: Collection (sigl) identifier
            locale: Language/market to query

        Returns:
            Product ids in catalog order
        """
        pass

    @abstractmethod
    async def fetch_details(self, item_ids: Sequence[str], locale: Locale) -> List[Game]:
        """
        Fetch localized details for a batch of product ids.

        The order of the result is not guaranteed to follow ``item_ids``.
        """
        pass

    async def aclose(self) -> None:
        """Release network resources"""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
