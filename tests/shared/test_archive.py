import base64
import io
import threading
import zipfile

import pytest
import requests
from unittest.mock import patch, MagicMock

from shared.archive import ArchiveError, build_zip_from_urls, download_image

URL_A = "https://cdn.shopify.com/a.jpg"
URL_B = "https://cdn.shopify.com/b.jpg"
URL_C = "https://cdn.shopify.com/c.jpg"


def _image(content: bytes, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.content = content
    return resp


def _open(result) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(base64.b64decode(result.zip_base64)))


class TestDownloadImage:
    def test_returns_bytes_on_success(self) -> None:
        with patch("shared.archive.requests.get", return_value=_image(b"jpeg")):
            assert download_image(URL_A) == b"jpeg"

    def test_returns_none_on_http_error(self) -> None:
        with patch("shared.archive.requests.get", return_value=_image(b"", status_code=403)):
            assert download_image(URL_A) is None

    def test_returns_none_on_connection_error(self) -> None:
        with patch("shared.archive.requests.get", side_effect=requests.ConnectionError("boom")):
            assert download_image(URL_A) is None


class TestBuildZipFromUrls:
    """Nomes das entradas seguem a posição de entrada; falhas são omitidas."""

    def test_entries_named_by_input_position(self) -> None:
        contents = {URL_A: b"A", URL_B: b"B"}
        with patch("shared.archive.requests.get", side_effect=lambda url, timeout: _image(contents[url])):
            result = build_zip_from_urls([URL_A, URL_B])

        assert result.image_count == 2
        with _open(result) as archive:
            assert archive.namelist() == ["image-1.jpg", "image-2.jpg"]
            assert archive.read("image-1.jpg") == b"A"
            assert archive.read("image-2.jpg") == b"B"
            assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in archive.infolist())

    def test_names_stable_when_second_download_finishes_first(self) -> None:
        b_finished = threading.Event()

        def fake_get(url, timeout):
            if url == URL_A:
                assert b_finished.wait(timeout=5)
                return _image(b"A")
            b_finished.set()
            return _image(b"B")

        with patch("shared.archive.requests.get", side_effect=fake_get):
            result = build_zip_from_urls([URL_A, URL_B])

        with _open(result) as archive:
            assert archive.read("image-1.jpg") == b"A"
            assert archive.read("image-2.jpg") == b"B"

    def test_failed_download_is_omitted_and_keeps_other_names(self) -> None:
        def fake_get(url, timeout):
            if url == URL_B:
                raise requests.Timeout("slow cdn")
            return _image(url.encode())

        with patch("shared.archive.requests.get", side_effect=fake_get):
            result = build_zip_from_urls([URL_A, URL_B, URL_C])

        assert result.image_count == 2
        with _open(result) as archive:
            assert archive.namelist() == ["image-1.jpg", "image-3.jpg"]
            assert archive.read("image-3.jpg") == URL_C.encode()

    def test_repeated_url_downloaded_once_and_written_per_position(self) -> None:
        with patch("shared.archive.requests.get", return_value=_image(b"A")) as mock_get:
            result = build_zip_from_urls([URL_A, URL_A, URL_A])

        mock_get.assert_called_once()
        assert result.image_count == 3
        with _open(result) as archive:
            assert archive.namelist() == ["image-1.jpg", "image-2.jpg", "image-3.jpg"]

    def test_all_downloads_failing_yields_empty_archive(self) -> None:
        with patch("shared.archive.requests.get", return_value=_image(b"", status_code=500)):
            result = build_zip_from_urls([URL_A])

        assert result.image_count == 0
        with _open(result) as archive:
            assert archive.namelist() == []

    def test_zip_stream_failure_raises_archive_error(self) -> None:
        with patch("shared.archive.requests.get", return_value=_image(b"A")):
            with patch("shared.archive.zipfile.ZipFile", side_effect=OSError("disk full")):
                with pytest.raises(ArchiveError) as exc_info:
                    build_zip_from_urls([URL_A])
        assert "disk full" in str(exc_info.value)
