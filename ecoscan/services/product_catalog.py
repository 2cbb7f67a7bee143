"""
Open Food Facts product lookup. The HTTP layer depends on the ProductCatalog
protocol so tests can swap in an in-memory catalog.
"""
import logging
from typing import Dict, Optional, Protocol

import requests

from ..config import settings
from ..models import RawProduct

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "product_name",
    "brands",
    "quantity",
    "image_front_url",
    "ingredients_text",
    "allergens_hierarchy",
    "nutrient_levels",
    "ecoscore_grade",
    "ecoscore_data",
)


class CatalogError(Exception):
    """Base class for product lookup failures."""


class ProductNotFoundError(CatalogError):
    pass


class UpstreamError(CatalogError):
    pass


class ProductCatalog(Protocol):
    def fetch_product(self, barcode: str) -> RawProduct:
        ...


class OpenFoodFactsCatalog:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ):
        self.base_url = (base_url or settings.OFF_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.OFF_TIMEOUT
        self.headers: Dict[str, str] = {"User-Agent": user_agent or settings.OFF_USER_AGENT}

    def product_url(self, barcode: str) -> str:
        return f"{self.base_url}/api/v2/product/{barcode}.json"

    def fetch_product(self, barcode: str) -> RawProduct:
        """
        Single GET against the v2 product endpoint, restricted to the fields we classify.
        Raises ProductNotFoundError or UpstreamError; no retries.
        """
        url = self.product_url(barcode)
        try:
            response = requests.get(
                url,
                params={"fields": ",".join(PRODUCT_FIELDS)},
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Open Food Facts request failed barcode=%s error=%s", barcode, e)
            raise UpstreamError(f"{type(e).__name__}: {e}") from e

        logger.info("Open Food Facts barcode=%s status=%s", barcode, response.status_code)
        if response.status_code == 404:
            raise ProductNotFoundError("Product not found")
        if not response.ok:
            raise UpstreamError(f"API call failed with status: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from Open Food Facts: {e}") from e

        if not isinstance(data, dict) or data.get("status") == 0 or not data.get("product"):
            raise ProductNotFoundError("Product not found in database")

        return RawProduct.from_payload(data["product"])


def get_catalog() -> ProductCatalog:
    return OpenFoodFactsCatalog()
