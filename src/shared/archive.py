"""
Image archive builder: downloads image URLs and packs them into a base64 zip.

Entries are named by input position (image-1.jpg, image-2.jpg, ...), never by
download completion order. Failed downloads are skipped.
"""

import base64
import io
import zipfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Optional

import requests
from aws_lambda_powertools import Logger

logger = Logger(service="order-images")

DOWNLOAD_WORKERS = 8
REQUEST_TIMEOUT_SEC = 30
COMPRESS_LEVEL = 9
ENTRY_NAME = "image-{index}.jpg"


class ArchiveError(Exception):
    """Raised when the zip stream itself cannot be written."""

    pass


@dataclass(frozen=True)
class ArchiveResult:
    zip_base64: str
    image_count: int


def download_image(url: str) -> Optional[bytes]:
    """Return the image bytes, or None when the download fails."""
    try:
        resp = requests.get(url, timeout=REQUEST_TIMEOUT_SEC)
    except requests.RequestException as e:
        logger.warning("Could not download %s: %s", url, e)
        return None
    if not resp.ok:
        logger.warning("Could not download %s: HTTP %s", url, resp.status_code)
        return None
    return resp.content


def _download_all(urls: list[str]) -> list[Optional[bytes]]:
    # Each distinct URL is fetched once; results are mapped back by position.
    unique_urls = list(dict.fromkeys(urls))
    if not unique_urls:
        return []

    by_url: dict[str, Optional[bytes]] = {}
    workers = min(DOWNLOAD_WORKERS, len(unique_urls))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_url = {executor.submit(download_image, url): url for url in unique_urls}
        for future in as_completed(future_to_url):
            by_url[future_to_url[future]] = future.result()

    return [by_url.get(url) for url in urls]


def build_zip_from_urls(urls: list[str]) -> ArchiveResult:
    """
    Download every URL and bundle the successful ones into a zip.

    Args:
        urls: Image URLs; position n (1-based) becomes entry image-<n>.jpg.

    Returns:
        ArchiveResult with the base64 zip and the number of embedded images.

    Raises:
        ArchiveError: When writing the zip stream fails.
    """
    payloads = _download_all(urls)

    buffer = io.BytesIO()
    image_count = 0
    try:
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL) as archive:
            for index, content in enumerate(payloads, start=1):
                if content is None:
                    continue
                archive.writestr(ENTRY_NAME.format(index=index), content)
                image_count += 1
    except (zipfile.LargeZipFile, OSError, ValueError) as e:
        raise ArchiveError(f"Could not build image archive: {e}") from e

    logger.info(f"Archive built with {image_count} of {len(urls)} images")
    return ArchiveResult(
        zip_base64=base64.b64encode(buffer.getvalue()).decode("ascii"),
        image_count=image_count,
    )
