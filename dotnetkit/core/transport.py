"""
HTTP transport used by the catalog client and the artifact downloader.

Thin wrapper over a ``requests.Session`` exposing the three operations the
installer needs: fetch a JSON document, learn a resource's content length, and
stream a response body.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "dotnetkit"


class HttpTransport:
    """
    Blocking HTTP client.

    Network and HTTP status failures surface as ``requests.RequestException``;
    callers translate them into domain errors.

    Example:
        >>> transport = HttpTransport(timeout=30)
        >>> index = transport.get_json("https://example.com/releases-index.json")
    """

    def __init__(
        self, session: Optional[requests.Session] = None, timeout: int = 60
    ):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.timeout = timeout

    def get_json(self, url: str) -> Any:
        """
        GET a URL and decode its body as JSON.

        Raises:
            requests.RequestException: On network or HTTP errors
            ValueError: If the body is not valid JSON
        """
        logger.debug(f"GET {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def content_length(self, url: str) -> int:
        """
        Issue a HEAD request and return the reported Content-Length.

        Returns:
            Length in bytes, or 0 if the server does not report one
        """
        logger.debug(f"HEAD {url}")
        response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        response.raise_for_status()

        value = response.headers.get("content-length")
        try:
            return int(value) if value else 0
        except ValueError:
            logger.warning(f"Ignoring malformed Content-Length '{value}' for {url}")
            return 0

    @contextmanager
    def stream(self, url: str, chunk_size: int = 81920) -> Iterator[Iterator[bytes]]:
        """
        Stream a response body in chunks.

        Yields:
            Iterator over non-empty byte chunks, in the order received
        """
        logger.debug(f"GET (stream) {url}")
        response = self.session.get(
            url, stream=True, timeout=self.timeout, allow_redirects=True
        )
        try:
            response.raise_for_status()
            yield (chunk for chunk in response.iter_content(chunk_size) if chunk)
        finally:
            response.close()

    def close(self):
        self.session.close()
