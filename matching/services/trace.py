"""
Trace collection for row diagnostics.

The resolver reports every intermediate step to a collector. The mutating
path uses NullTraceCollector; debug_row_trace uses TraceCollector and
returns its contents without writing anything.
"""

from typing import Any, Dict, List, Optional

from django.utils import timezone


class NullTraceCollector:
    """Collector that discards everything."""

    def record_queries(self, queries: List[str]) -> None:
        pass

    def record_index_hit(self, hit: Optional[Dict[str, Any]], error: Optional[str] = None) -> None:
        pass

    def record_domain(self, domain: Optional[str], method: Optional[str], errors: List[str]) -> None:
        pass

    def record_site_queries(self, queries: List[str]) -> None:
        pass

    def record_search(
        self,
        query: str,
        results: List[Dict[str, Any]],
        error: Optional[str] = None,
        raw: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        pass

    def record_site_search(self, url: str, status_code: Optional[int], links: List[str], error: Optional[str] = None) -> None:
        pass

    def record_pool(self, pre_filter: List[Dict[str, Any]], post_filter: List[Dict[str, Any]]) -> None:
        pass

    def record_validations(self, validations: List[Dict[str, Any]]) -> None:
        pass

    def record_decision(self, decision: Dict[str, Any], threshold: Optional[float]) -> None:
        pass


class TraceCollector(NullTraceCollector):
    """Collector that keeps a structured record of one resolution run."""

    def __init__(self, row_id: str = ""):
        self.data: Dict[str, Any] = {
            "row_id": row_id,
            "started_at": timezone.now().isoformat(),
            "queries": [],
            "index_hit": None,
            "index_error": None,
            "domain": None,
            "domain_method": None,
            "domain_errors": [],
            "site_queries": [],
            "searches": [],
            "site_search": [],
            "candidates_pre_filter": [],
            "candidates_post_filter": [],
            "validations": [],
            "threshold": None,
            "decision": None,
        }

    def record_queries(self, queries):
        self.data["queries"] = list(queries)

    def record_index_hit(self, hit, error=None):
        self.data["index_hit"] = hit
        self.data["index_error"] = error

    def record_domain(self, domain, method, errors):
        self.data["domain"] = domain
        self.data["domain_method"] = method
        self.data["domain_errors"] = list(errors)

    def record_site_queries(self, queries):
        self.data["site_queries"] = list(queries)

    def record_search(self, query, results, error=None, raw=None):
        entry = {"query": query, "results": list(results)}
        if raw is not None:
            entry["raw"] = list(raw)
        if error:
            entry["error"] = error
        self.data["searches"].append(entry)

    def record_site_search(self, url, status_code, links, error=None):
        entry = {"url": url, "status_code": status_code, "links": list(links)}
        if error:
            entry["error"] = error
        self.data["site_search"].append(entry)

    def record_pool(self, pre_filter, post_filter):
        self.data["candidates_pre_filter"] = list(pre_filter)
        self.data["candidates_post_filter"] = list(post_filter)

    def record_validations(self, validations):
        self.data["validations"] = list(validations)

    def record_decision(self, decision, threshold):
        self.data["decision"] = decision
        self.data["threshold"] = threshold

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)
