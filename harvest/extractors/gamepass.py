"""
Game Pass catalog client.

Two public endpoints back the CatalogSource operations:
- catalog.gamepass.com/sigls/v2 lists the products of a collection ("sigl")
- displaycatalog.mp.microsoft.com/v7.0/products returns localized product
  details for up to a few dozen ids per request

HTTP failures are mapped onto the exception hierarchy so the retry runner can
tell transient errors (timeouts, 429, 5xx) from permanent ones (401/403/404).
This client performs a single request per call and never retries by itself.
"""

import httpx
from pydantic import ValidationError
from typing import Any, Dict, List, Optional, Sequence

from core.exceptions import (
    AuthenticationError,
    CatalogRequestError,
    CatalogResponseError,
    NetworkError,
    RateLimitError,
    ResourceNotFoundError,
)
from harvest.extractors.base import CatalogSource
from schemas.catalog import Game, ImageDescriptor, Locale
import logging

logger = logging.getLogger(__name__)

SIGLS_URL = "https://catalog.gamepass.com/sigls/v2"
PRODUCTS_URL = "https://displaycatalog.mp.microsoft.com/v7.0/products"
# Correlation vector the display catalog expects from clients
MS_CV = "DGU1mcuYo0WMMp+F.1"

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "gamepass-harvester/1.0",
}


class GamePassCatalog(CatalogSource):
    """
    Fetch collection members and product details from the Game Pass catalog.

    Attributes:
        timeout: Request timeout in seconds (default: 30.0)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        sigls_url: str = SIGLS_URL,
        products_url: str = PRODUCTS_URL,
    ):
        self.timeout = timeout
        self.sigls_url = sigls_url
        self.products_url = products_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_members(self, collection_id: str, locale: Locale) -> List[str]:
        params = {
            "id": collection_id,
            "language": locale.catalog_language,
            "market": locale.market,
        }
        data = await self._get_json(self.sigls_url, params)

        if not isinstance(data, list):
            raise CatalogResponseError(
                "Unexpected collection payload",
                context={
                    "collection_id": collection_id,
                    "locale": locale.code,
                    "payload_type": type(data).__name__,
                }
            )

        # The first element describes the list itself and carries no "id"
        item_ids = []
        for entry in data:
            if isinstance(entry, dict) and entry.get("id"):
                item_ids.append(str(entry["id"]))

        logger.debug(f"Collection {collection_id} ({locale}) lists {len(item_ids)} products")
        return item_ids

    async def fetch_details(self, item_ids: Sequence[str], locale: Locale) -> List[Game]:
        if not item_ids:
            return []

        params = {
            "bigIds": ",".join(item_ids),
            "market": locale.market,
            "languages": locale.catalog_language,
            "MS-CV": MS_CV,
        }
        data = await self._get_json(self.products_url, params)

        if not isinstance(data, dict):
            raise CatalogResponseError(
                "Unexpected product payload",
                context={"locale": locale.code, "payload_type": type(data).__name__}
            )

        games = []
        for product in data.get("Products") or []:
            game = self._parse_product(product)
            if game is not None:
                games.append(game)

        logger.debug(f"Fetched {len(games)}/{len(item_ids)} product details for {locale}")
        return games

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        """
        Issue one GET and decode the JSON body.

        Raises:
            NetworkError: Timeouts, transport failures, 5xx answers
            RateLimitError: HTTP 429
            AuthenticationError: HTTP 401/403
            ResourceNotFoundError: HTTP 404
            CatalogRequestError: Any other non-2xx answer
            CatalogResponseError: Body is not JSON
        """
        try:
            response = await self._client.get(url, params=params, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(
                "Catalog request timed out",
                context={"url": url, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.TransportError as e:
            raise NetworkError(
                "Catalog request failed",
                context={"url": url},
                original_exception=e
            )

        status = response.status_code
        context = {"url": url, "status_code": status}

        if status in (401, 403):
            raise AuthenticationError(f"Catalog refused access to {url}", context=context)

        if status == 404:
            raise ResourceNotFoundError(f"Catalog resource not found: {url}", context=context)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                "Catalog rate limit exceeded",
                context=context,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if status >= 500:
            raise NetworkError(
                f"Catalog server error {status}",
                context={**context, "response_body": response.text[:500]}
            )

        if status >= 400:
            raise CatalogRequestError(
                f"Catalog request rejected with {status}",
                context={**context, "response_body": response.text[:500]}
            )

        try:
            return response.json()
        except ValueError as e:
            raise CatalogResponseError(
                "Failed to parse JSON response",
                context={**context, "response_body": response.text[:500]},
                original_exception=e
            )

    @staticmethod
    def _parse_product(product: Dict[str, Any]) -> Optional[Game]:
        """Map a display catalog product onto a Game; None when unusable"""
        product_id = product.get("ProductId")
        localized = product.get("LocalizedProperties") or []
        if not product_id or not localized:
            logger.warning(f"Skipping product without id or localized properties: {product_id}")
            return None

        props = localized[0]
        try:
            images = [
                ImageDescriptor(
                    file_id=image.get("FileId"),
                    height=image.get("Height"),
                    width=image.get("Width"),
                    uri=image.get("Uri"),
                    image_purpose=image.get("ImagePurpose"),
                    image_position_info=image.get("ImagePositionInfo"),
                )
                for image in props.get("Images") or []
            ]

            return Game(
                product_id=str(product_id),
                product_title=props.get("ProductTitle") or "",
                product_description=props.get("ProductDescription"),
                developer_name=props.get("DeveloperName"),
                publisher_name=props.get("PublisherName"),
                short_title=props.get("ShortTitle"),
                sort_title=props.get("SortTitle"),
                short_description=props.get("ShortDescription"),
                image_descriptors=images or None,
            )
        except (ValidationError, AttributeError) as e:
            # A malformed product must not cost the rest of the batch
            logger.warning(f"Skipping malformed product {product_id}: {e}")
            return None
