"""
Candidate Generator.

Builds the pool of URLs worth validating for a row:

1. Site-restricted queries for the manufacturer domain (when known) run
   ahead of the unrestricted queries.
2. Queries run in priority order; results are deduplicated by URL without
   fragment and generation stops as soon as the result cap is reached.
3. If nothing was found and a domain is known, the domain's own site-search
   pages are fetched and their links become candidates.
4. The domain-trust policy filters the pool.

A failed query or site-search fetch is recorded and skipped; it never
aborts generation.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set
from urllib.parse import quote_plus, urldefrag

from matching.models import CandidateSource
from matching.services.domain_trust import DomainTrustPolicy
from matching.services.page_signals import extract_links
from matching.services.query_builder import QueryBuilder, dedupe_queries
from matching.services.trace import NullTraceCollector
from matching.services.types import Candidate, RowInput
from matching.utils.normalization import hostname_from_url
from matching.utils.url_safety import is_safe_public_url

logger = logging.getLogger(__name__)

# Common internal search endpoints across storefront platforms
SITE_SEARCH_PATTERNS = [
    "/search?q=",
    "/search?query=",
    "/catalogsearch/result/?q=",
    "/products?search=",
]


@dataclass
class CandidatePool:
    """Candidates before and after the domain-trust filter."""

    all: List[Candidate] = field(default_factory=list)
    filtered: List[Candidate] = field(default_factory=list)
    site_queries: List[str] = field(default_factory=list)


class CandidateGenerator:
    """
    Discovers candidate URLs through search and site-search.

    Usage:
        generator = CandidateGenerator(provider, fetcher, DomainTrustPolicy(), max_results=5)
        pool = generator.generate(queries, "acme.com", row)
    """

    def __init__(
        self,
        search_provider,
        fetcher,
        trust_policy: DomainTrustPolicy,
        max_results: int = 5,
    ):
        self.search_provider = search_provider
        self.fetcher = fetcher
        self.trust_policy = trust_policy
        self.max_results = max_results
        self.query_builder = QueryBuilder()

    def generate(
        self,
        queries: List[str],
        domain: Optional[str],
        row: RowInput,
        trace=None,
    ) -> CandidatePool:
        """
        Generate and filter candidates for a row.

        Args:
            queries: Unrestricted queries in priority order
            domain: Resolved manufacturer domain, or None
            row: Normalized row input
            trace: Optional trace collector

        Returns:
            CandidatePool with the full and the policy-filtered pools
        """
        trace = trace or NullTraceCollector()

        site_queries = self.query_builder.build_site_queries(domain, row) if domain else []
        trace.record_site_queries(site_queries)

        candidates: List[Candidate] = []
        seen: Set[str] = set()

        self._search(dedupe_queries(site_queries + list(queries)), candidates, seen, trace)

        if not candidates and domain:
            self._site_search(domain, row, candidates, seen, trace)

        filtered = self.trust_policy.filter(candidates, domain)
        trace.record_pool(
            [candidate.to_dict() for candidate in candidates],
            [candidate.to_dict() for candidate in filtered],
        )

        logger.info(
            f"Row {row.id}: {len(candidates)} candidates, "
            f"{len(filtered)} after domain filter ({domain or 'no domain'})"
        )
        return CandidatePool(all=candidates, filtered=filtered, site_queries=site_queries)

    def _add(self, url: str, source: str, candidates: List[Candidate], seen: Set[str], title=None, snippet=None) -> bool:
        """Add a candidate if new and safe. Returns True when the cap is reached."""
        key, _ = urldefrag(url.strip())
        if key and key not in seen and is_safe_public_url(key):
            seen.add(key)
            candidates.append(Candidate(url=key, source=source, title=title, snippet=snippet))
        return len(candidates) >= self.max_results

    def _search(self, queries: List[str], candidates: List[Candidate], seen: Set[str], trace) -> None:
        if not self.search_provider.is_configured:
            return

        for query in queries:
            if len(candidates) >= self.max_results:
                return

            try:
                results = self.search_provider.search(query, self.max_results)
            except Exception as e:
                logger.warning(f"Search failed for {query!r}: {e}")
                trace.record_search(query, [], error=str(e))
                continue

            trace.record_search(
                query,
                [result.to_dict() for result in results],
                raw=[result.raw for result in results],
            )

            for result in results:
                if self._add(
                    result.url,
                    CandidateSource.SEARCH_PROVIDER.value,
                    candidates,
                    seen,
                    title=result.title or None,
                    snippet=result.snippet or None,
                ):
                    return

    def _site_search(
        self,
        domain: str,
        row: RowInput,
        candidates: List[Candidate],
        seen: Set[str],
        trace,
    ) -> None:
        term = row.sku or row.product_name
        if not term:
            return

        for pattern in SITE_SEARCH_PATTERNS:
            if len(candidates) >= self.max_results:
                return

            url = f"https://{domain}{pattern}{quote_plus(term)}"
            try:
                response = self.fetcher.fetch(url)
            except Exception as e:
                logger.warning(f"Site search fetch raised for {url}: {e}")
                trace.record_site_search(url, None, [], error=str(e))
                continue

            if not response.success:
                trace.record_site_search(url, response.status_code, [], error=response.error)
                continue

            links = [
                link
                for link in extract_links(response.content, response.final_url or url)
                if self.trust_policy.host_matches(hostname_from_url(link), domain)
            ]
            trace.record_site_search(url, response.status_code, links)

            for link in links:
                if self._add(link, CandidateSource.SITE_SEARCH.value, candidates, seen):
                    return
