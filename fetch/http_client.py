import httpx
import logging
from typing import Optional, Dict

# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; TechStackMonitor/1.0)",
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}


async def fetch_url(
    url: str,
    timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Response:
    """
    GET a page, following redirects.

    Args:
        url: The URL to fetch
        timeout: Total request timeout in seconds (default: 10s)
        connect_timeout: Connection timeout in seconds (default: 5s)
        headers: Extra HTTP headers, merged over the defaults

    Returns:
        httpx.Response object; ``response.url`` is the final URL
    """
    logger = logging.getLogger(__name__)
    logger.debug(f"HTTP GET {url} (timeout: {timeout or DEFAULT_TIMEOUT}s)")

    timeout_config = httpx.Timeout(
        timeout=timeout or DEFAULT_TIMEOUT,
        connect=connect_timeout or DEFAULT_CONNECT_TIMEOUT
    )
    request_headers = {**DEFAULT_HEADERS, **(headers or {})}

    try:
        async with httpx.AsyncClient(timeout=timeout_config, follow_redirects=True) as client:
            response = await client.get(url, headers=request_headers)
            logger.debug(f"HTTP {response.status_code} {response.url} ({len(response.content)} bytes)")
            # Status handling is left to the crawler
            return response
    except httpx.TimeoutException as e:
        logger.warning(f"HTTP timeout for {url}: {e}")
        raise
    except httpx.RequestError as e:
        logger.warning(f"HTTP request error for {url}: {e}")
        raise
