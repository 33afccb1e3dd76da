"""
Manufacturer URL Resolver.

Orchestrates one row through the pipeline:

    row -> exact index entry (short-circuit)
        -> QueryBuilder -> ManufacturerDomainResolver -> DomainTrustPolicy
        -> CandidateGenerator -> PageValidator -> DecisionEngine

evaluate() runs the pipeline without writing anything. process_row() and
debug_row_trace() both call evaluate(); they differ only in what happens to
the result (persisted, or returned as a trace), so the diagnostic path can
never drift from the production one.

Usage:
    with build_resolver() as resolver:
        decision = resolver.process_row(row_id)
        trace = resolver.debug_row_trace(other_row_id)
"""

import logging
from typing import Any, Dict, Optional

from django.conf import settings

from matching.discovery.serpapi import SerpAPISearchProvider
from matching.fetchers.page_fetcher import HttpxPageFetcher
from matching.services.candidate_generator import CandidateGenerator
from matching.services.decision_engine import (
    REASON_NO_DOMAIN,
    REASON_NO_MANUFACTURER_CANDIDATES,
    REASON_NO_CANDIDATES,
    Decision,
    DecisionEngine,
)
from matching.services.domain_resolver import ManufacturerDomainResolver
from matching.services.domain_trust import DomainTrustPolicy
from matching.services.page_validator import Expectations, PageValidator
from matching.services.query_builder import QueryBuilder
from matching.services.stores import DjangoIndexStore, DjangoRowStore, IndexWriter
from matching.services.trace import NullTraceCollector, TraceCollector
from matching.services.types import RowInput

logger = logging.getLogger(__name__)


class ManufacturerUrlResolver:
    """
    Resolves rows to canonical manufacturer product pages.

    All collaborators are injected; build_resolver() wires the production
    ones from settings.
    """

    def __init__(
        self,
        search_provider,
        fetcher,
        index_store,
        row_store,
        max_results: int = 5,
        threshold: float = 0.65,
        domain_relaxation: float = 0.1,
        allow_resellers: bool = False,
        index_lookup_limit: int = 5,
    ):
        self.search_provider = search_provider
        self.fetcher = fetcher
        self.index_store = index_store
        self.row_store = row_store
        self.max_results = max_results

        self.query_builder = QueryBuilder()
        self.trust_policy = DomainTrustPolicy(allow_resellers=allow_resellers)
        self.domain_resolver = ManufacturerDomainResolver(
            index_store, search_provider, lookup_limit=index_lookup_limit
        )
        self.candidate_generator = CandidateGenerator(
            search_provider, fetcher, self.trust_policy, max_results=max_results
        )
        self.validator = PageValidator(fetcher)
        self.decision_engine = DecisionEngine(
            threshold=threshold, domain_relaxation=domain_relaxation
        )
        self.index_writer = IndexWriter(index_store)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            close()

    def evaluate(self, row: RowInput, trace=None) -> Decision:
        """
        Run the full pipeline for a row without side effects.

        Args:
            row: Normalized row input
            trace: Collector for intermediate steps (NullTraceCollector if omitted)

        Returns:
            Decision for the row
        """
        trace = trace or NullTraceCollector()

        queries = self.query_builder.build_queries(row)
        trace.record_queries(queries)

        indexed = self._from_index(row, trace)
        if indexed is not None:
            trace.record_decision(indexed.to_dict(), None)
            return indexed

        resolution = self.domain_resolver.resolve(row, trace)
        domain = resolution.domain

        if not self.trust_policy.permits_row(domain):
            decision = self.decision_engine.unresolved(REASON_NO_DOMAIN)
            trace.record_decision(decision.to_dict(), None)
            return decision

        pool = self.candidate_generator.generate(queries, domain, row, trace)

        if not pool.filtered:
            reason = REASON_NO_MANUFACTURER_CANDIDATES if pool.all else REASON_NO_CANDIDATES
            decision = self.decision_engine.unresolved(reason, domain=domain)
            decision.threshold = self.decision_engine.threshold_for(bool(domain))
            trace.record_decision(decision.to_dict(), decision.threshold)
            return decision

        expectations = Expectations(
            sku=row.sku,
            ndc_item_code=row.ndc_item_code,
            product_name=row.product_name,
            domain_hint=domain or row.supplier_key,
        )
        validated = self.validator.validate_all(
            pool.filtered, expectations, limit=self.max_results
        )
        trace.record_validations([result.to_record() for result in validated])

        decision = self.decision_engine.decide(
            validated, domain, self.trust_policy.policy_tag()
        )
        trace.record_decision(decision.to_dict(), decision.threshold)
        return decision

    def _from_index(self, row: RowInput, trace) -> Optional[Decision]:
        """
        Short-circuit to a page already confirmed for this exact row key.

        A failed lookup is logged and treated as a miss.
        """
        if not row.supplier_key or not (row.sku_norm or row.ndc_item_code_norm):
            return None

        try:
            hit = self.index_store.lookup_entry(
                row.tenant_id, row.supplier_key, row.sku_norm, row.ndc_item_code_norm
            )
        except Exception as e:
            logger.warning(f"Index entry lookup failed for row {row.id}: {e}")
            trace.record_index_hit(None, error=str(e))
            return None

        if hit is None:
            trace.record_index_hit(None)
            return None

        trace.record_index_hit(
            {
                "source_url": hit.entry.source_url,
                "source_domain": hit.entry.source_domain,
                "confidence": hit.entry.confidence,
                "matched_by": hit.matched_by,
                "signals": hit.entry.signals,
            }
        )
        return self.decision_engine.accept_indexed(
            url=hit.entry.source_url,
            domain=hit.entry.source_domain or None,
            confidence=hit.entry.confidence,
            matched_by=hit.matched_by,
        )

    def process_row(self, row_id) -> Decision:
        """
        Resolve a row and persist the outcome.

        The row write is a hard failure and propagates. The index upsert
        after a confident resolution is best-effort.

        Returns:
            The persisted Decision
        """
        row = RowInput.from_row(self.row_store.get_row(row_id))
        decision = self.evaluate(row)

        self.row_store.save_outcome(row_id, decision)
        logger.info(
            f"Row {row_id} -> {decision.status} ({decision.reason}, "
            f"confidence {decision.confidence:.2f})"
        )

        if decision.is_resolved and not decision.from_index:
            self.index_writer.record_resolution(row, decision)

        return decision

    def debug_row_trace(self, row_id) -> Dict[str, Any]:
        """
        Re-run the pipeline for a row and return every intermediate step.

        Nothing is written to the row or the index.
        """
        row = RowInput.from_row(self.row_store.get_row(row_id))
        trace = TraceCollector(row_id=str(row_id))
        self.evaluate(row, trace)
        return trace.to_dict()


def build_resolver(
    search_provider=None,
    fetcher=None,
    index_store=None,
    row_store=None,
) -> ManufacturerUrlResolver:
    """
    Build a resolver wired from Django settings.

    Any collaborator can be overridden, which is how tests and the
    management command inject fakes.
    """
    timeout = getattr(settings, "MATCH_REQUEST_TIMEOUT", 8)
    return ManufacturerUrlResolver(
        search_provider=search_provider or SerpAPISearchProvider(timeout=timeout),
        fetcher=fetcher or HttpxPageFetcher(timeout=timeout),
        index_store=index_store or DjangoIndexStore(),
        row_store=row_store or DjangoRowStore(),
        max_results=getattr(settings, "MATCH_SEARCH_MAX_RESULTS", 5),
        threshold=getattr(settings, "MATCH_VALIDATION_THRESHOLD", 0.65),
        domain_relaxation=getattr(settings, "MATCH_DOMAIN_THRESHOLD_RELAXATION", 0.1),
        allow_resellers=getattr(settings, "MATCH_ALLOW_RESELLERS", False),
        index_lookup_limit=getattr(settings, "MATCH_INDEX_LOOKUP_LIMIT", 5),
    )
