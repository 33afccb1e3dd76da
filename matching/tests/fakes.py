"""
In-memory doubles for the resolver's collaborators.
"""

from typing import Dict, Iterable, List, Optional, Tuple, Union

from matching.discovery.serpapi.provider import SearchProviderError
from matching.fetchers.page_fetcher import FetchResponse
from matching.services.stores import (
    MATCHED_BY_INDEX_NDC,
    MATCHED_BY_INDEX_SKU,
    IndexEntry,
    IndexHit,
)
from matching.services.types import SearchResult
from matching.utils.normalization import normalize_ndc_item_code


class FakeSearchProvider:
    """Search provider returning canned results per query."""

    def __init__(
        self,
        results: Optional[Dict[str, Iterable[str]]] = None,
        default: Optional[Iterable[str]] = None,
        configured: bool = True,
        failing: Iterable[str] = (),
    ):
        self.results = {query: list(urls) for query, urls in (results or {}).items()}
        self.default = list(default or [])
        self.configured = configured
        self.failing = set(failing)
        self.calls: List[Tuple[str, int]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def search(self, query: str, num_results: int = 5) -> List[SearchResult]:
        if not self.configured:
            return []
        self.calls.append((query, num_results))
        if query in self.failing:
            raise SearchProviderError(f"boom: {query}")
        urls = self.results.get(query, self.default)
        return [
            SearchResult(url=url, title=f"Result {i}", raw={"position": i + 1, "link": url})
            for i, url in enumerate(urls)
        ][:num_results]


PageSpec = Union[str, Tuple[int, str]]


class FakeFetcher:
    """Fetcher serving canned pages; unknown URLs are 404s."""

    def __init__(self, pages: Optional[Dict[str, PageSpec]] = None, raising: Iterable[str] = ()):
        self.pages = dict(pages or {})
        self.raising = set(raising)
        self.calls: List[str] = []
        self.closed = False

    def fetch(self, url: str) -> FetchResponse:
        self.calls.append(url)
        if url in self.raising:
            raise RuntimeError(f"connection reset: {url}")

        spec = self.pages.get(url)
        if spec is None:
            return FetchResponse(url=url, content="", status_code=404, error="HTTP 404")

        status, html = spec if isinstance(spec, tuple) else (200, spec)
        success = 200 <= status < 300
        return FetchResponse(
            url=url,
            content=html if success else "",
            status_code=status,
            success=success,
            final_url=url,
            error=None if success else f"HTTP {status}",
        )

    def close(self):
        self.closed = True


class InMemoryIndexStore:
    """IndexStore keeping entries in a dict keyed like the real table."""

    def __init__(self, domains: Optional[Dict[Tuple[str, str], List[str]]] = None, fail: bool = False):
        self.domains = {key: list(value) for key, value in (domains or {}).items()}
        self.entries: Dict[Tuple[str, str, str], IndexEntry] = {}
        self.fail = fail
        self.lookups: List[Tuple[str, str]] = []

    def lookup_domains(self, tenant_id, supplier_key, limit=5):
        self.lookups.append((str(tenant_id), supplier_key))
        if self.fail:
            raise ConnectionError("index unavailable")
        return self.domains.get((str(tenant_id), supplier_key), [])[:limit]

    def lookup_entry(self, tenant_id, supplier_key, sku_norm, ndc_norm):
        if self.fail:
            raise ConnectionError("index unavailable")
        scoped = [
            entry
            for (tenant, key, _), entry in self.entries.items()
            if tenant == str(tenant_id) and key == supplier_key
        ]
        if ndc_norm:
            for entry in scoped:
                if normalize_ndc_item_code(entry.ndc_item_code) == ndc_norm:
                    return IndexHit(entry=entry, matched_by=MATCHED_BY_INDEX_NDC)
        if sku_norm:
            for entry in scoped:
                if entry.sku_norm == sku_norm:
                    return IndexHit(entry=entry, matched_by=MATCHED_BY_INDEX_SKU)
        return None

    def upsert(self, entry: IndexEntry):
        if self.fail:
            raise ConnectionError("index unavailable")
        self.entries[(str(entry.tenant_id), entry.supplier_key, entry.sku_norm)] = entry


def product_page(
    title: str = "",
    h1: str = "",
    body: str = "",
    json_ld: Optional[str] = None,
) -> str:
    """Build a minimal product page."""
    script = f'<script type="application/ld+json">{json_ld}</script>' if json_ld else ""
    return (
        f"<html><head><title>{title}</title>{script}</head>"
        f"<body><h1>{h1}</h1><p>{body}</p></body></html>"
    )
