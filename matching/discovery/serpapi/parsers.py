"""
Result Parsers - Extract structured data from SerpAPI responses.
"""

from typing import List, Dict, Any

from matching.services.types import SearchResult
from matching.utils.normalization import hostname_from_url


class OrganicResultParser:
    """
    Parse organic search results from Google Search.

    Extracts URL, title, snippet and source domain. Results without a link
    are dropped.
    """

    def parse(self, response: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Extract useful data from organic results.

        Args:
            response: SerpAPI response dictionary

        Returns:
            List of parsed results with url, title, snippet, source, position
            and the untouched provider item under "raw"
        """
        results = []
        organic = response.get("organic_results") or []

        for item in organic:
            url = item.get("link") or ""
            if not url:
                continue
            results.append(
                {
                    "url": url,
                    "title": item.get("title") or "",
                    "snippet": item.get("snippet") or "",
                    "source": hostname_from_url(url) or "",
                    "position": item.get("position", 0),
                    "raw": item,
                }
            )

        return results

    def to_search_results(self, response: Dict[str, Any]) -> List[SearchResult]:
        """Parse a response straight into SearchResult objects."""
        return [
            SearchResult(
                url=item["url"],
                title=item["title"],
                snippet=item["snippet"],
                raw=item["raw"],
            )
            for item in self.parse(response)
        ]
