"""
Page fetcher for candidate validation and site-search fallback.

Synchronous httpx client with redirect following and a bounded timeout.
Each fetch either returns a FetchResponse or records the failure on it;
callers never see transport exceptions. Every request, redirect hops
included, must target a public http(s) URL. There are no retries here,
retrying a row is left to the task queue.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from django.conf import settings

from matching.utils.url_safety import is_safe_public_url

logger = logging.getLogger(__name__)


class UnsafeURLError(httpx.RequestError):
    """A request or redirect hop targeted a non-public URL."""


def _reject_unsafe_request(request: httpx.Request) -> None:
    if not is_safe_public_url(str(request.url)):
        raise UnsafeURLError(f"Refusing unsafe URL {request.url}", request=request)


@dataclass
class FetchResponse:
    """Response from a fetch operation."""

    url: str
    content: str
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    success: bool = False
    final_url: Optional[str] = None
    error: Optional[str] = None


class HttpxPageFetcher:
    """
    Page fetcher backed by a pooled httpx.Client.

    Usage:
        with HttpxPageFetcher(timeout=8) as fetcher:
            response = fetcher.fetch("https://acme.com/widget-pro")
    """

    DEFAULT_HEADERS = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
    }

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Per-request timeout in seconds (default MATCH_REQUEST_TIMEOUT)
            user_agent: Custom User-Agent string (default MATCH_USER_AGENT)
            transport: Optional httpx transport, used by tests
        """
        self.timeout = timeout or getattr(settings, "MATCH_REQUEST_TIMEOUT", 8)
        self.user_agent = user_agent or getattr(settings, "MATCH_USER_AGENT", "")
        self._transport = transport
        self._http_client: Optional[httpx.Client] = None

    def __enter__(self):
        self._init_http_client()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _init_http_client(self):
        if self._http_client is None:
            headers = dict(self.DEFAULT_HEADERS)
            if self.user_agent:
                headers["User-Agent"] = self.user_agent
            self._http_client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
                event_hooks={"request": [_reject_unsafe_request]},
            )

    def close(self):
        """Close HTTP client connection."""
        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def fetch(self, url: str) -> FetchResponse:
        """
        Fetch a URL.

        Args:
            url: URL to fetch

        Returns:
            FetchResponse; success is True only for 2xx responses
        """
        if not is_safe_public_url(url):
            logger.warning(f"Refusing to fetch unsafe URL {url}")
            return FetchResponse(url=url, content="", status_code=0, error="unsafe_url")

        self._init_http_client()

        try:
            response = self._http_client.get(url)
        except UnsafeURLError as e:
            logger.warning(f"Blocked redirect while fetching {url}: {e}")
            return FetchResponse(url=url, content="", status_code=0, error="unsafe_redirect")
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout fetching {url}: {e}")
            return FetchResponse(url=url, content="", status_code=0, error=f"Timeout: {e}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"HTTP error fetching {url}: {e}")
            return FetchResponse(url=url, content="", status_code=0, error=str(e))

        is_success = 200 <= response.status_code < 300
        error_msg = None
        if not is_success:
            error_msg = f"HTTP {response.status_code}"
            logger.info(f"HTTP {response.status_code} for {url}")

        return FetchResponse(
            url=url,
            content=response.text if is_success else "",
            status_code=response.status_code,
            headers=dict(response.headers),
            success=is_success,
            final_url=str(response.url),
            error=error_msg,
        )
