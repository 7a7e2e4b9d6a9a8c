"""HTTP retrieval of remote images."""

from __future__ import annotations

import threading

import httpx
from loguru import logger

from imgopt.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from imgopt.exceptions import NetworkError

# Shared httpx.Client for image downloads (reused across worker threads)
_http_client: httpx.Client | None = None
_CLIENT_LOCK = threading.Lock()


def get_http_client(timeout: float = DEFAULT_HTTP_TIMEOUT) -> httpx.Client:
    """Get or create the shared httpx.Client.

    Uses double-checked locking for thread-safe lazy initialization.
    ``timeout`` only applies when the client is first created.
    """
    global _http_client
    if _http_client is None:
        with _CLIENT_LOCK:
            if _http_client is None:
                _http_client = httpx.Client(
                    follow_redirects=True,
                    timeout=timeout,
                    headers={"User-Agent": DEFAULT_USER_AGENT},
                )
    return _http_client


def close_http_client() -> None:
    """Close the shared client. Call during application cleanup."""
    global _http_client
    with _CLIENT_LOCK:
        if _http_client is not None:
            _http_client.close()
            _http_client = None


def fetch_url(url: str, client: httpx.Client | None = None) -> tuple[bytes, int]:
    """GET a URL and return its body.

    Non-2xx responses are not raised here; callers decide based on the
    returned status code.

    Args:
        url: URL to fetch
        client: Client to use (defaults to the shared client)

    Returns:
        Tuple of (response body, HTTP status code)

    Raises:
        NetworkError: If the request could not be completed
    """
    http = client or get_http_client()
    logger.debug(f"Downloading {url}")
    try:
        response = http.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise NetworkError(url, e) from e
    return response.content, response.status_code
