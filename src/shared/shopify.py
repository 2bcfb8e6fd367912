"""
Shopify Admin REST client: open orders listing and product lookups.

Expects env: SHOPIFY_STORE_NAME, ADMIN_API_ACCESS_TOKEN; optional API_VERSION.
"""

import os
from typing import Any, Optional

import requests
from aws_lambda_powertools import Logger
from pydantic import BaseModel, ConfigDict

logger = Logger(service="order-images")

DEFAULT_API_VERSION = "2024-04"
ORDERS_PATH = "/orders.json"
PRODUCT_PATH = "/products/{product_id}.json"
MAX_PAGE_SIZE = 250
REQUEST_TIMEOUT_SEC = 30


class ShopifyConfigError(Exception):
    """Raised when the store credentials are not set in the environment."""

    pass


class ShopifyAPIError(Exception):
    """Raised when the Admin API returns an error or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None, details: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ShopifyCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    store_name: str
    access_token: str
    api_version: str = DEFAULT_API_VERSION

    @property
    def base_url(self) -> str:
        return f"https://{self.store_name}.myshopify.com/admin/api/{self.api_version}"


def load_credentials() -> ShopifyCredentials:
    """
    Read the store credentials for this invocation.

    Raises:
        ShopifyConfigError: When the store name or the access token is missing.
    """
    store_name = os.environ.get("SHOPIFY_STORE_NAME")
    access_token = os.environ.get("ADMIN_API_ACCESS_TOKEN")
    if not store_name or not access_token:
        raise ShopifyConfigError("Server configuration error.")
    return ShopifyCredentials(
        store_name=store_name,
        access_token=access_token,
        api_version=os.environ.get("API_VERSION") or DEFAULT_API_VERSION,
    )


class ShopifyClient:
    def __init__(self, credentials: ShopifyCredentials) -> None:
        self.credentials = credentials

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "X-Shopify-Access-Token": self.credentials.access_token,
        }

    def _get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        try:
            return requests.get(url, params=params, headers=self._headers(), timeout=REQUEST_TIMEOUT_SEC)
        except requests.Timeout as e:
            raise ShopifyAPIError("Timeout connecting to the Shopify API") from e
        except requests.RequestException as e:
            raise ShopifyAPIError(f"Connection to the Shopify API failed: {e}") from e

    @staticmethod
    def _json(resp: requests.Response) -> dict[str, Any]:
        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            logger.warning("Shopify response is not valid JSON: %s", resp.text[:300])
            raise ShopifyAPIError("Invalid response from the Shopify API") from e
        return data if isinstance(data, dict) else {}

    def get_orders_page(
        self,
        params: dict[str, Any] | None = None,
        page_url: str | None = None,
        include_details: bool = True,
    ) -> tuple[list[dict[str, Any]], Optional[str]]:
        """
        Fetch one page of orders.

        Args:
            params: Query for the first page (status, created_at bounds, limit).
            page_url: Cursor URL from a previous page's Link header; overrides params.
            include_details: Append the response body to the error message on failure.

        Returns:
            Tuple of (orders on this page, URL of the next page or None).

        Raises:
            ShopifyAPIError: On non-success status, connection failure or invalid JSON.
        """
        if page_url:
            resp = self._get(page_url)
        else:
            resp = self._get(f"{self.credentials.base_url}{ORDERS_PATH}", params=params)

        if not resp.ok:
            body = resp.text or ""
            logger.warning("Shopify orders status %s: %s", resp.status_code, body[:500])
            message = f"Shopify API error: {resp.reason}"
            if include_details:
                message = f"{message}. Details: {body}"
            raise ShopifyAPIError(message, status_code=resp.status_code, details=body)

        orders = self._json(resp).get("orders") or []
        next_url = (resp.links.get("next") or {}).get("url")
        return [o for o in orders if isinstance(o, dict)], next_url

    def get_product(self, product_id: int | str) -> dict[str, Any]:
        """
        Fetch a single product.

        Raises:
            ShopifyAPIError: On non-success status, connection failure or invalid JSON.
        """
        path = PRODUCT_PATH.format(product_id=product_id)
        resp = self._get(f"{self.credentials.base_url}{path}")
        if not resp.ok:
            raise ShopifyAPIError(
                f"Shopify API error: {resp.reason}", status_code=resp.status_code, details=resp.text or ""
            )
        product = self._json(resp).get("product")
        return product if isinstance(product, dict) else {}
