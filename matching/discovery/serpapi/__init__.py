"""
SerpAPI integration for manufacturer URL discovery.
"""

from matching.discovery.serpapi.client import SerpAPIClient
from matching.discovery.serpapi.parsers import OrganicResultParser
from matching.discovery.serpapi.provider import SearchProviderError, SerpAPISearchProvider

__all__ = [
    "SerpAPIClient",
    "OrganicResultParser",
    "SearchProviderError",
    "SerpAPISearchProvider",
]
