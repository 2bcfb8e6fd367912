"""Business logic for order images: retrieve open orders, resolve product images, bundle them."""

from typing import Any, Callable, Optional, Union

from aws_lambda_powertools import Logger

from repository import OrderRepository
from schemas import DateSelection, OrderRangeSelection
from shared.archive import ArchiveResult, build_zip_from_urls
from shared.shopify import ShopifyAPIError, ShopifyClient, ShopifyCredentials

logger = Logger(service="order-images")


class ProductImageCache:
    """
    Product id -> image URL for one invocation. None means "looked up, no image".

    The first outcome stored for a product is kept.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Optional[str]] = {}

    def __contains__(self, product_id: Any) -> bool:
        return str(product_id) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, product_id: Any) -> Optional[str]:
        return self._entries.get(str(product_id))

    def get_or_resolve(self, product_id: Any, resolve: Callable[[Any], Optional[str]]) -> Optional[str]:
        key = str(product_id)
        if key not in self._entries:
            self._entries.setdefault(key, resolve(product_id))
        return self._entries[key]


def _quantity(item: dict[str, Any]) -> int:
    try:
        quantity = int(item.get("quantity") or 0)
    except (TypeError, ValueError):
        return 0
    return max(quantity, 0)


class ImageBundleService:
    def __init__(self, credentials: ShopifyCredentials) -> None:
        self.repo = OrderRepository(ShopifyClient(credentials))

    def fetch_orders(self, selection: Union[DateSelection, OrderRangeSelection]) -> list[dict[str, Any]]:
        if isinstance(selection, DateSelection):
            return self.repo.get_orders_by_date(selection.date)
        return self.repo.get_orders_by_number_range(selection.start, selection.end)

    def resolve_image_urls(
        self, orders: list[dict[str, Any]], cache: Optional[ProductImageCache] = None
    ) -> list[str]:
        """
        One URL per unit of quantity, in order then line-item order.

        Each distinct product is looked up at most once through `cache`; products
        without image (or whose lookup failed) contribute nothing.
        """
        cache = cache if cache is not None else ProductImageCache()
        urls: list[str] = []
        for order in orders:
            for item in order.get("line_items") or []:
                if not isinstance(item, dict) or not item.get("product_id"):
                    continue
                image_url = cache.get_or_resolve(item["product_id"], self._lookup_image)
                if image_url:
                    urls.extend([image_url] * _quantity(item))
        logger.info(f"{len(urls)} images resolved from {len(cache)} products")
        return urls

    def build_bundle(self, urls: list[str]) -> ArchiveResult:
        return build_zip_from_urls(urls)

    def _lookup_image(self, product_id: Any) -> Optional[str]:
        try:
            return self.repo.get_product_image_url(product_id)
        except ShopifyAPIError as e:
            logger.warning(f"Failed to fetch product {product_id}: {e}")
            return None
