"""
SerpAPI Client - HTTP client wrapper for the SerpAPI Google Search endpoint.
"""

import logging
import requests
from typing import Dict, Any, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


class SerpAPIClient:
    """
    Wrapper for SerpAPI Google Search API.

    Usage:
        client = SerpAPIClient()
        results = client.google_search("Acme official site", num_results=5)
    """

    BASE_URL = "https://serpapi.com/search"

    def __init__(self, api_key: str = None, timeout: Optional[float] = None):
        """
        Initialize SerpAPI client.

        Args:
            api_key: SerpAPI API key. If not provided, uses settings.SERPAPI_KEY
            timeout: Per-request timeout in seconds (default MATCH_REQUEST_TIMEOUT)

        Raises:
            ValueError: If no API key is configured
        """
        self.api_key = api_key or getattr(settings, "SERPAPI_KEY", None)
        self.timeout = timeout or getattr(settings, "MATCH_REQUEST_TIMEOUT", 8)

        if not self.api_key:
            raise ValueError("SERPAPI_KEY not configured")

    def google_search(
        self,
        query: str,
        num_results: int = 10,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Perform Google organic search.

        Args:
            query: Search query string
            num_results: Number of results to return (default 10)
            **kwargs: Additional SerpAPI parameters (gl, hl, etc.)

        Returns:
            SerpAPI response dictionary with organic_results

        Raises:
            requests.RequestException: On network or API errors
        """
        params = {
            "engine": "google",
            "q": query,
            "num": num_results,
            "api_key": self.api_key,
            **kwargs,
        }
        return self._make_request(params)

    def _make_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make HTTP request to SerpAPI.

        Raises:
            requests.RequestException: On network or API errors
        """
        try:
            response = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"SerpAPI request failed for query {params.get('q')!r}: {e}")
            raise
