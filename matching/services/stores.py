"""
Row and index stores.

The resolver talks to storage only through the RowStore and IndexStore
interfaces, so tests and the trace path can swap in other implementations.
The Django implementations below are the production ones.

Row writes are hard failures: if the outcome cannot be written the
exception propagates and the task queue records the failure. Index writes
are best-effort (see IndexWriter).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from django.utils import timezone

from matching.models import MatchRow, MatchRowStatus, SourceIndexEntry
from matching.monitoring.sentry_integration import capture_resolution_error
from matching.services.decision_engine import Decision
from matching.services.types import RowInput
from matching.utils.normalization import hostname_from_url, normalize_ndc_item_code

logger = logging.getLogger(__name__)

MATCHED_BY_INDEX_NDC = "index:supplier+ndc"
MATCHED_BY_INDEX_SKU = "index:supplier+sku"


@dataclass
class IndexEntry:
    """Data for one SourceIndexEntry upsert."""

    tenant_id: str
    supplier_key: str
    sku_norm: str
    source_url: str
    source_domain: str
    confidence: float = 1.0
    signals: Dict[str, Any] = field(default_factory=dict)
    supplier_name: str = ""
    sku: str = ""
    ndc_item_code: str = ""
    product_name: str = ""
    brand_name: str = ""

    @classmethod
    def from_row(
        cls,
        row: RowInput,
        source_url: str,
        confidence: float,
        signals: Dict[str, Any],
    ) -> "IndexEntry":
        return cls(
            tenant_id=row.tenant_id,
            supplier_key=row.supplier_key,
            sku_norm=row.sku_norm,
            source_url=source_url,
            source_domain=hostname_from_url(source_url) or "",
            confidence=confidence,
            signals=signals,
            supplier_name=row.supplier_name,
            sku=row.sku,
            ndc_item_code=row.ndc_item_code,
            product_name=row.product_name,
            brand_name=row.brand_name,
        )

    @classmethod
    def from_model(cls, obj: SourceIndexEntry) -> "IndexEntry":
        return cls(
            tenant_id=str(obj.tenant_id),
            supplier_key=obj.supplier_key,
            sku_norm=obj.sku_norm,
            source_url=obj.source_url,
            source_domain=obj.source_domain,
            confidence=obj.confidence,
            signals=obj.signals or {},
            supplier_name=obj.supplier_name,
            sku=obj.sku,
            ndc_item_code=obj.ndc_item_code,
            product_name=obj.product_name,
            brand_name=obj.brand_name,
        )


@dataclass
class IndexHit:
    """An exact index entry for a row and which key matched it."""

    entry: IndexEntry
    matched_by: str


class RowStore(Protocol):
    def get_row(self, row_id) -> MatchRow: ...

    def save_outcome(self, row_id, decision: Decision) -> None: ...


class IndexStore(Protocol):
    def lookup_domains(self, tenant_id: str, supplier_key: str, limit: int) -> List[str]: ...

    def lookup_entry(
        self, tenant_id: str, supplier_key: str, sku_norm: str, ndc_norm: str
    ) -> Optional[IndexHit]: ...

    def upsert(self, entry: IndexEntry) -> None: ...


class DjangoRowStore:
    """RowStore backed by the MatchRow table."""

    def get_row(self, row_id) -> MatchRow:
        return MatchRow.objects.get(id=row_id)

    def save_outcome(self, row_id, decision: Decision) -> None:
        """
        Write a decision onto its row.

        Only output attributes are touched; scheduling fields are left alone.

        Raises:
            MatchRow.DoesNotExist: If the row vanished
            django.db.DatabaseError: On write failure
        """
        updated = MatchRow.objects.filter(id=row_id).update(
            status=decision.status,
            candidates=decision.candidate_records(),
            resolved_url=decision.resolved_url,
            resolved_domain=decision.resolved_domain,
            confidence=round(decision.confidence, 4),
            matched_by=decision.matched_by,
            reasons=[decision.reason],
            updated_at=timezone.now(),
        )
        if updated == 0:
            raise MatchRow.DoesNotExist(f"MatchRow {row_id} not found")


class DjangoIndexStore:
    """IndexStore backed by the product_source_index table."""

    UPDATE_FIELDS = [
        "supplier_name",
        "sku",
        "ndc_item_code",
        "ndc_item_code_norm",
        "product_name",
        "brand_name",
        "source_url",
        "source_domain",
        "confidence",
        "signals",
        "last_seen_at",
        "updated_at",
    ]

    def lookup_domains(self, tenant_id: str, supplier_key: str, limit: int = 5) -> List[str]:
        """
        Most recently seen source domains for a supplier.

        Returns:
            Lowercase domains without "www.", deduplicated, at most limit long
        """
        if not supplier_key:
            return []

        rows = (
            SourceIndexEntry.objects.filter(tenant_id=tenant_id, supplier_key=supplier_key)
            .order_by("-last_seen_at")
            .values_list("source_domain", flat=True)[:limit]
        )

        domains = []
        for value in rows:
            domain = (value or "").strip().lower()
            if domain.startswith("www."):
                domain = domain[4:]
            if domain and domain not in domains:
                domains.append(domain)
        return domains

    def lookup_entry(
        self, tenant_id: str, supplier_key: str, sku_norm: str, ndc_norm: str
    ) -> Optional[IndexHit]:
        """
        Exact index entry for a row, NDC item code first, then SKU.

        Returns:
            IndexHit, or None when neither key is indexed
        """
        if not supplier_key:
            return None

        entries = SourceIndexEntry.objects.filter(tenant_id=tenant_id, supplier_key=supplier_key)
        keys = [
            ("ndc_item_code_norm", ndc_norm, MATCHED_BY_INDEX_NDC),
            ("sku_norm", sku_norm, MATCHED_BY_INDEX_SKU),
        ]
        for field_name, value, matched_by in keys:
            if not value:
                continue
            obj = entries.filter(**{field_name: value}).order_by("-last_seen_at").first()
            if obj is not None:
                return IndexHit(entry=IndexEntry.from_model(obj), matched_by=matched_by)
        return None

    def upsert(self, entry: IndexEntry) -> None:
        """
        Insert or update the entry for (tenant_id, supplier_key, sku_norm).

        Runs as a single INSERT ... ON CONFLICT DO UPDATE statement, so
        concurrent writers race harmlessly and the last one wins.
        """
        now = timezone.now()
        SourceIndexEntry.objects.bulk_create(
            [
                SourceIndexEntry(
                    tenant_id=entry.tenant_id,
                    supplier_key=entry.supplier_key,
                    sku_norm=entry.sku_norm,
                    supplier_name=entry.supplier_name,
                    sku=entry.sku,
                    ndc_item_code=entry.ndc_item_code,
                    ndc_item_code_norm=normalize_ndc_item_code(entry.ndc_item_code),
                    product_name=entry.product_name,
                    brand_name=entry.brand_name,
                    source_url=entry.source_url,
                    source_domain=entry.source_domain,
                    confidence=entry.confidence,
                    signals=entry.signals,
                    last_seen_at=now,
                    created_at=now,
                    updated_at=now,
                )
            ],
            update_conflicts=True,
            unique_fields=["tenant_id", "supplier_key", "sku_norm"],
            update_fields=self.UPDATE_FIELDS,
        )


class IndexWriter:
    """
    Best-effort index maintenance after a confident resolution.

    Rows without a normalized SKU are not indexed: the index key would be
    ("tenant", "supplier", "") and every SKU-less row of a supplier would
    overwrite the same entry.
    """

    def __init__(self, index_store: IndexStore):
        self.index_store = index_store

    def write(self, entry: IndexEntry) -> bool:
        """
        Upsert an entry, logging and reporting failures instead of raising.

        Returns:
            True if the entry was written
        """
        if not entry.supplier_key or not entry.sku_norm:
            logger.warning(
                f"Skipping index upsert for tenant {entry.tenant_id}: "
                f"supplier_key={entry.supplier_key!r} sku_norm={entry.sku_norm!r}"
            )
            return False

        try:
            self.index_store.upsert(entry)
        except Exception as e:
            logger.warning(
                f"Index upsert failed for {entry.supplier_key}/{entry.sku_norm}: {e}"
            )
            capture_resolution_error(
                error=e,
                stage="index_upsert",
                extra_data={"supplier_key": entry.supplier_key, "sku_norm": entry.sku_norm},
            )
            return False
        return True

    def record_resolution(self, row: RowInput, decision: Decision) -> bool:
        """Index the accepted candidate of a resolved_confident decision."""
        if decision.status != MatchRowStatus.RESOLVED_CONFIDENT or decision.accepted is None:
            return False

        entry = IndexEntry.from_row(
            row,
            source_url=decision.accepted.url,
            confidence=round(decision.confidence, 4),
            signals={
                "matched_by": decision.matched_by,
                "matched_tokens": list(decision.accepted.matched_tokens),
            },
        )
        return self.write(entry)
