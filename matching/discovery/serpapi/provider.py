"""
Search provider used by the resolution engine.

The engine only needs "query in, ordered results out". This adapter wraps
SerpAPIClient so that:
- a missing API key makes the provider unconfigured, and search() returns
  an empty list without any network call
- request failures surface as SearchProviderError, which callers record and
  skip
"""

import logging
from typing import List, Optional

import requests
from django.conf import settings

from matching.discovery.serpapi.client import SerpAPIClient
from matching.discovery.serpapi.parsers import OrganicResultParser
from matching.services.types import SearchResult

logger = logging.getLogger(__name__)


class SearchProviderError(Exception):
    """A search call failed (network error, non-2xx, bad payload)."""


class SerpAPISearchProvider:
    """Organic web search through SerpAPI."""

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[float] = None):
        key = api_key if api_key is not None else getattr(settings, "SERPAPI_KEY", "")
        self._client: Optional[SerpAPIClient] = None
        if key:
            self._client = SerpAPIClient(api_key=key, timeout=timeout)
        self._parser = OrganicResultParser()

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def search(self, query: str, num_results: int = 5) -> List[SearchResult]:
        """
        Run one search query.

        Args:
            query: Query string
            num_results: Result cap requested from the provider

        Returns:
            Ordered results, at most num_results long. Empty when unconfigured.

        Raises:
            SearchProviderError: If the provider call fails
        """
        if self._client is None:
            logger.debug(f"Search provider not configured, skipping query: {query}")
            return []

        try:
            response = self._client.google_search(query, num_results=num_results)
        except requests.RequestException as e:
            raise SearchProviderError(str(e)) from e
        except ValueError as e:
            # Body was not valid JSON
            raise SearchProviderError(f"Invalid search response: {e}") from e

        return self._parser.to_search_results(response)[:num_results]
