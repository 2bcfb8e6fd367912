"""
Handler for order images microservice.

POST body: { "type": "date", "date": "2024-05-01" } or { "type": "order_range", "start": 1001, "end": 1010 }
Response: { "message": "...", "zipData": "<base64 zip>", "fileName": "shopify-images-2024-05-01.zip" }
"""

import base64
import json
from datetime import datetime, timezone

from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.parser import parse
from aws_lambda_powertools.utilities.typing import LambdaContext

from shared.responses import message_response
from shared.shopify import ShopifyConfigError, load_credentials
from schemas import SELECTION_TYPES, ImageBundleRequest
from service import ImageBundleService

logger = Logger(service="order-images")

NO_ORDERS_MESSAGE = "No unfulfilled orders found for the selected criteria."
NO_IMAGES_MESSAGE = "No product images found in these unfulfilled orders."


@logger.inject_lambda_context
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    method = _http_method(event)
    if method != "POST":
        return message_response(405, "Method Not Allowed")

    try:
        credentials = load_credentials()
    except ShopifyConfigError as e:
        logger.error(f"Configuração ausente: {e!s}")
        return message_response(500, str(e))

    try:
        body = _body_json(event)
        if body.get("type") not in SELECTION_TYPES:
            return message_response(400, "Invalid request type.")

        try:
            selection = parse(event=body, model=ImageBundleRequest).root
        except ValueError as e:
            logger.warning(f"Validação: {e!s}")
            return message_response(400, "Invalid request payload.", details=str(e))

        service = ImageBundleService(credentials)

        orders = service.fetch_orders(selection)
        if not orders:
            return message_response(200, NO_ORDERS_MESSAGE)

        image_urls = service.resolve_image_urls(orders)
        if not image_urls:
            return message_response(200, NO_IMAGES_MESSAGE)

        archive = service.build_bundle(image_urls)
        return message_response(
            200,
            f"Successfully bundled {archive.image_count} images from unfulfilled orders.",
            zipData=archive.zip_base64,
            fileName=f"shopify-images-{datetime.now(timezone.utc).date().isoformat()}.zip",
        )

    except Exception as e:
        logger.exception("Erro ao gerar pacote de imagens")
        return message_response(500, f"An internal error occurred: {e}")


def _http_method(event: dict) -> str | None:
    # HTTP API (v2) first, REST API (v1) as fallback
    method = event.get("requestContext", {}).get("http", {}).get("method")
    return (method or event.get("httpMethod") or "").upper() or None


def _body_json(event: dict) -> dict:
    """Request body as a dict; invalid JSON raises."""
    body = event.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, str):
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8")
        body = json.loads(body)
    return body if isinstance(body, dict) else {}
