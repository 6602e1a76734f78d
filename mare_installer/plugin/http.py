"""
HTTP Fetcher.

This module wraps a shared httpx client for manifest and archive downloads.

Key features:
- Fixed request timeout (30 seconds by default)
- Installer identification headers
- Failures wrapped in NetworkError naming the URL
"""

import httpx

from mare_installer import __version__
from mare_installer.errors import NetworkError

USER_AGENT = f"Dalamud-MareSynchronos-installer/{__version__}"
FROM_HEADER = "PrincessRTFM"


class HttpFetcher:
    """
    Blocking HTTP GET helper.

    Redirects are followed. Use as a context manager to close the
    underlying connection pool.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        simulate: bool = False,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize HttpFetcher.

        Args:
            timeout: Request timeout in seconds
            simulate: Accept stale cached responses
            transport: Optional transport (tests use httpx.MockTransport)
        """
        cache_control = "max-stale, no-transform" if simulate else "no-transform"
        self.timeout = timeout
        self.client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": USER_AGENT,
                "From": FROM_HEADER,
                "Cache-Control": cache_control,
            },
        )

    def get(self, url: str) -> bytes:
        """
        Download a URL.

        Args:
            url: URL to fetch

        Returns:
            Response body

        Raises:
            NetworkError: On timeout, transport failure or non-success status
        """
        try:
            response = self.client.get(url)
            response.raise_for_status()
            return response.content
        except httpx.TimeoutException as e:
            raise NetworkError(
                f"HTTP request to {url} timed out (>{self.timeout:g}s)"
            ) from e
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"HTTP request to {url} failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"HTTP request to {url} failed: {e}") from e

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
