"""
Manufacturer Domain Resolver.

Finds the manufacturer's canonical web domain for a supplier, independent
of any particular product:

1. Index lookup: domains already confirmed for (tenant_id, supplier_key).
   A domain containing the supplier key wins, otherwise the most recent.
2. Web search: "official site" queries for the supplier name, in order,
   stopping at the first query with usable results. A result host
   containing the supplier key wins; failing that, the top result host of
   that query is taken as a best guess.
3. Otherwise no domain.

Failures in either step are deliberately collapsed to "no domain from this
step": they are logged, recorded on the DomainResolution and never raised.
A missing manufacturer anchor is handled downstream by the domain-trust
policy.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from matching.monitoring import add_resolution_breadcrumb
from matching.services.query_builder import QueryBuilder
from matching.services.trace import NullTraceCollector
from matching.services.types import RowInput
from matching.utils.normalization import hostname_from_url, normalize_supplier_key

logger = logging.getLogger(__name__)

METHOD_INDEX = "index"
METHOD_SEARCH_HEURISTIC = "search_heuristic"
METHOD_SEARCH_TOP = "search_top"

# Hosts that rank for "<company> official site" but never are the company
NON_MANUFACTURER_HOSTS = {
    "wikipedia.org",
    "linkedin.com",
    "facebook.com",
    "instagram.com",
    "twitter.com",
    "x.com",
    "youtube.com",
    "bloomberg.com",
    "crunchbase.com",
    "amazon.com",
    "ebay.com",
    "walmart.com",
}

OFFICIAL_SITE_RESULTS = 5


@dataclass
class DomainResolution:
    """Result of resolving a supplier's domain."""

    domain: Optional[str] = None
    method: Optional[str] = None
    errors: List[str] = field(default_factory=list)


def _supplier_needles(row: RowInput) -> List[str]:
    needles = []
    for value in (row.supplier_key, normalize_supplier_key(row.supplier_name)):
        if value and value not in needles:
            needles.append(value)
    return needles


def host_mentions_supplier(host: str, row: RowInput) -> bool:
    """True if the host (ignoring dots and hyphens) contains the supplier key or name."""
    if not host:
        return False
    compact = host.replace("-", "").replace(".", "")
    return any(needle in host or needle in compact for needle in _supplier_needles(row))


def _is_excluded(host: str) -> bool:
    return any(host == blocked or host.endswith("." + blocked) for blocked in NON_MANUFACTURER_HOSTS)


class ManufacturerDomainResolver:
    """
    Resolves the manufacturer domain for a row's supplier.

    Usage:
        resolver = ManufacturerDomainResolver(index_store, search_provider)
        resolution = resolver.resolve(row)
    """

    def __init__(self, index_store, search_provider, lookup_limit: int = 5):
        self.index_store = index_store
        self.search_provider = search_provider
        self.lookup_limit = lookup_limit
        self.query_builder = QueryBuilder()

    def resolve(self, row: RowInput, trace=None) -> DomainResolution:
        """
        Resolve the manufacturer domain.

        Args:
            row: Normalized row input
            trace: Optional trace collector

        Returns:
            DomainResolution with domain None when nothing was found
        """
        trace = trace or NullTraceCollector()
        resolution = DomainResolution()

        domain = self._from_index(row, resolution)
        if domain:
            resolution.domain, resolution.method = domain, METHOD_INDEX
        else:
            self._from_search(row, resolution, trace)

        if resolution.domain:
            add_resolution_breadcrumb(
                stage="domain",
                message=f"Resolved domain {resolution.domain} via {resolution.method}",
                row_id=row.id,
            )
        else:
            logger.info(f"No manufacturer domain for supplier {row.supplier_name!r}")

        trace.record_domain(resolution.domain, resolution.method, resolution.errors)
        return resolution

    def _from_index(self, row: RowInput, resolution: DomainResolution) -> Optional[str]:
        if not row.supplier_key:
            return None

        try:
            domains = self.index_store.lookup_domains(
                row.tenant_id, row.supplier_key, self.lookup_limit
            )
        except Exception as e:
            logger.warning(f"Index lookup failed for supplier {row.supplier_key}: {e}")
            resolution.errors.append(f"index_lookup: {e}")
            return None

        if not domains:
            return None

        for domain in domains:
            if host_mentions_supplier(domain, row):
                return domain
        return domains[0]

    def _from_search(self, row: RowInput, resolution: DomainResolution, trace) -> None:
        if not row.supplier_name or not self.search_provider.is_configured:
            return

        for query in self.query_builder.build_official_site_queries(row.supplier_name):
            try:
                results = self.search_provider.search(query, OFFICIAL_SITE_RESULTS)
            except Exception as e:
                logger.warning(f"Domain search failed for {query!r}: {e}")
                resolution.errors.append(f"search: {query}: {e}")
                trace.record_search(query, [], error=str(e))
                continue

            trace.record_search(
                query,
                [result.to_dict() for result in results],
                raw=[result.raw for result in results],
            )

            hosts = [hostname_from_url(result.url) for result in results]
            hosts = [host for host in hosts if host and not _is_excluded(host)]
            if not hosts:
                continue

            for host in hosts:
                if host_mentions_supplier(host, row):
                    resolution.domain = host
                    resolution.method = METHOD_SEARCH_HEURISTIC
                    return

            # No host mentions the supplier: take the top result as best guess
            resolution.domain = hosts[0]
            resolution.method = METHOD_SEARCH_TOP
            return
