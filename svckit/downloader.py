"""Download a URL's body, optionally capped at a number of bytes."""

from __future__ import annotations

import requests

_CHUNK_SIZE = 64 * 1024


class DownloadError(Exception):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"response status code: {status_code}")
        self.status_code = status_code


class Downloader:
    """Fetches URLs with GET; a positive ``bytes_size_limit`` truncates the body."""

    def __init__(self, bytes_size_limit: int = 0, session: requests.Session | None = None) -> None:
        self.bytes_size_limit = bytes_size_limit
        self.session = session if session is not None else requests.Session()

    def download(self, url: str) -> bytes:
        """Return the body of ``url``; raise DownloadError on a non-2xx status."""
        with self.session.get(url, stream=True) as response:
            if not 200 <= response.status_code <= 299:
                raise DownloadError(response.status_code)
            limit = self.bytes_size_limit
            if limit <= 0:
                return response.content
            body = bytearray()
            for chunk in response.iter_content(_CHUNK_SIZE):
                body += chunk[: limit - len(body)]
                if len(body) >= limit:
                    break
            return bytes(body)