"""Order retrieval from the Shopify Admin API, by creation day or by order-number range."""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from aws_lambda_powertools import Logger

from shared.shopify import MAX_PAGE_SIZE, ShopifyClient

logger = Logger(service="order-images")

# Safety bound for cursor pagination on the order-range path.
MAX_RANGE_PAGES = 50
_DIGITS = re.compile(r"\d+")


def parse_order_number(order: dict[str, Any]) -> Optional[int]:
    """Numeric order number from `order_number` or the display `name` ("#1001" -> 1001)."""
    raw = order.get("order_number")
    if raw is None or raw == "":
        raw = order.get("name")
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    match = _DIGITS.search(str(raw))
    return int(match.group()) if match else None


def _iso_utc(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def day_bounds(day: date) -> tuple[str, str]:
    """UTC bounds 00:00:00.000 .. 23:59:59.999 of the given day, as ISO strings."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time(23, 59, 59, 999000), tzinfo=timezone.utc)
    return _iso_utc(start), _iso_utc(end)


class OrderRepository:
    def __init__(self, client: ShopifyClient) -> None:
        self.client = client

    def get_orders_by_date(self, day: date) -> list[dict[str, Any]]:
        # Single page only: a day's open orders are expected to fit in MAX_PAGE_SIZE.
        created_min, created_max = day_bounds(day)
        params = {
            "status": "open",
            "created_at_min": created_min,
            "created_at_max": created_max,
            "limit": MAX_PAGE_SIZE,
        }
        orders, _ = self.client.get_orders_page(params=params, include_details=False)
        logger.info(f"{len(orders)} open orders created on {day.isoformat()}")
        return orders

    def get_orders_by_number_range(self, start: int, end: int) -> list[dict[str, Any]]:
        """
        Walk open orders (newest first) until the range's lower bound is crossed.

        Stops on an empty page, when the lowest number on a page is below `start`,
        when there is no next page, or after MAX_RANGE_PAGES pages. Assumes order
        numbers descend across pages.
        """
        params = {"status": "open", "limit": MAX_PAGE_SIZE}
        collected: list[dict[str, Any]] = []
        next_url: Optional[str] = None

        for page in range(1, MAX_RANGE_PAGES + 1):
            orders, next_url = self.client.get_orders_page(params=params, page_url=next_url)
            if not orders:
                break
            collected.extend(orders)

            numbers = [n for n in (parse_order_number(o) for o in orders) if n is not None]
            if numbers and min(numbers) < start:
                logger.debug(f"Page {page} crossed order #{start}, stopping")
                break
            if not next_url:
                break
        else:
            logger.warning(f"Stopped after {MAX_RANGE_PAGES} pages looking for orders {start}-{end}")

        matches = [o for o in collected if _in_range(parse_order_number(o), start, end)]
        logger.info(f"{len(matches)} open orders between #{start} and #{end}")
        return matches

    def get_product_image_url(self, product_id: int | str) -> Optional[str]:
        product = self.client.get_product(product_id)
        image = product.get("image")
        if not isinstance(image, dict):
            return None
        src = image.get("src")
        return src if isinstance(src, str) and src else None


def _in_range(number: Optional[int], start: int, end: int) -> bool:
    return number is not None and start <= number <= end
