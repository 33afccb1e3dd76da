"""
Operator-facing row and job operations.

- approve_row: a reviewer confirms the product page for an unresolved row
- record_ingested_source: an ingestion pipeline reports a confirmed page
- process_job_batch: resolve the next batch of queued rows of a job
- requeue_rows: send unresolved rows of a job back to the queue
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from matching.models import MatchJob, MatchJobStatus, MatchRow, MatchRowStatus
from matching.monitoring import capture_resolution_error
from matching.services.stores import DjangoIndexStore, IndexEntry, IndexWriter
from matching.services.types import RowInput
from matching.utils.normalization import (
    hostname_from_url,
    normalize_sku,
    normalize_supplier_key,
)
from matching.utils.url_safety import is_safe_public_url

logger = logging.getLogger(__name__)

APPROVED_CONFIDENCE = 0.95
APPROVED_MATCHED_BY = "manual:approved"


def approve_row(
    row_id,
    url: str,
    approved_by: str = "",
    index_store=None,
) -> MatchRow:
    """
    Mark a row as resolved with a reviewer-approved URL.

    Args:
        row_id: MatchRow id
        url: Approved product page URL (http/https, public host)
        approved_by: Reviewer identifier stored in the index signals
        index_store: IndexStore override (defaults to DjangoIndexStore)

    Returns:
        The updated MatchRow

    Raises:
        ValueError: If the URL is not a public http(s) URL
        MatchRow.DoesNotExist: If the row does not exist
    """
    url = (url or "").strip()
    if not is_safe_public_url(url):
        raise ValueError(f"Invalid approval URL: {url!r}")

    domain = hostname_from_url(url)

    with transaction.atomic():
        row = MatchRow.objects.select_for_update().get(id=row_id)
        row.status = MatchRowStatus.RESOLVED_CONFIDENT
        row.resolved_url = url
        row.resolved_domain = domain
        row.confidence = APPROVED_CONFIDENCE
        row.matched_by = APPROVED_MATCHED_BY
        row.candidates = [
            {
                "url": url,
                "score": APPROVED_CONFIDENCE,
                "matched_tokens": ["manual.approve"],
                "domain": domain,
                "source": "manual",
            }
        ]
        row.reasons = ["approved_by_user"]
        row.updated_at = timezone.now()
        row.save(
            update_fields=[
                "status",
                "resolved_url",
                "resolved_domain",
                "confidence",
                "matched_by",
                "candidates",
                "reasons",
                "updated_at",
            ]
        )

    IndexWriter(index_store or DjangoIndexStore()).write(
        IndexEntry.from_row(
            RowInput.from_row(row),
            source_url=url,
            confidence=APPROVED_CONFIDENCE,
            signals={"approved_by": approved_by, "method": "manual:approve"},
        )
    )

    if row.job_id:
        row.job.refresh_counters()

    logger.info(f"Row {row_id} approved by {approved_by or 'unknown'}: {url}")
    return row


def record_ingested_source(
    tenant_id,
    supplier_name: str,
    sku: str,
    source_url: str,
    confidence: float = 1.0,
    supplier_key: str = "",
    product_name: str = "",
    brand_name: str = "",
    ndc_item_code: str = "",
    signals: Optional[dict] = None,
    index_store=None,
) -> bool:
    """
    Index a product page confirmed by an external ingestion run.

    Returns:
        True if the entry was written

    Raises:
        ValueError: If the URL is not a public http(s) URL
    """
    if not is_safe_public_url(source_url):
        raise ValueError(f"Invalid source URL: {source_url!r}")

    entry = IndexEntry(
        tenant_id=str(tenant_id),
        supplier_key=normalize_supplier_key(supplier_key) or normalize_supplier_key(supplier_name),
        sku_norm=normalize_sku(sku),
        source_url=source_url,
        source_domain=hostname_from_url(source_url) or "",
        confidence=confidence,
        signals=signals or {"method": "ingestion"},
        supplier_name=supplier_name,
        sku=sku,
        ndc_item_code=ndc_item_code,
        product_name=product_name,
        brand_name=brand_name,
    )
    return IndexWriter(index_store or DjangoIndexStore()).write(entry)


@dataclass
class BatchResult:
    """Summary of one processing batch."""

    job_id: str
    processed: int = 0
    resolved: int = 0
    unresolved: int = 0
    failed: int = 0
    remaining: int = 0
    status: str = ""
    errors: List[str] = field(default_factory=list)

    def to_dict(self):
        return {
            "job_id": self.job_id,
            "processed": self.processed,
            "resolved": self.resolved,
            "unresolved": self.unresolved,
            "failed": self.failed,
            "remaining": self.remaining,
            "status": self.status,
            "errors": self.errors,
        }


def process_job_batch(job_id, limit: Optional[int] = None, resolver=None) -> BatchResult:
    """
    Resolve up to `limit` queued rows of a job, oldest first.

    A row that fails hard (row write error) stays queued and is reported;
    the rest of the batch continues. The job ends "completed" when no queued
    rows remain, "partial" otherwise.

    Args:
        job_id: MatchJob id
        limit: Batch size (default MATCH_BATCH_LIMIT)
        resolver: ManufacturerUrlResolver override

    Returns:
        BatchResult summary
    """
    from matching.services.resolver import build_resolver

    limit = limit or getattr(settings, "MATCH_BATCH_LIMIT", 25)
    job = MatchJob.objects.get(id=job_id)
    result = BatchResult(job_id=str(job.id))

    job.status = MatchJobStatus.RUNNING
    job.updated_at = timezone.now()
    job.save(update_fields=["status", "updated_at"])

    row_ids = list(
        job.rows.filter(status=MatchRowStatus.QUEUED)
        .order_by("created_at")
        .values_list("id", flat=True)[:limit]
    )

    owns_resolver = resolver is None
    resolver = resolver or build_resolver()
    try:
        for row_id in row_ids:
            try:
                decision = resolver.process_row(row_id)
            except Exception as e:
                logger.error(f"Failed to process row {row_id} of job {job_id}: {e}")
                capture_resolution_error(error=e, stage="process_row", row_id=str(row_id))
                result.failed += 1
                result.errors.append(f"{row_id}: {e}")
                continue

            result.processed += 1
            if decision.is_resolved:
                result.resolved += 1
            else:
                result.unresolved += 1
    finally:
        if owns_resolver:
            resolver.close()

    result.remaining = job.rows.filter(status=MatchRowStatus.QUEUED).count()
    job.status = MatchJobStatus.PARTIAL if result.remaining else MatchJobStatus.COMPLETED
    job.updated_at = timezone.now()
    job.save(update_fields=["status", "updated_at"])
    job.refresh_counters()

    result.status = str(job.status)
    logger.info(
        f"Job {job_id} batch: {result.processed} processed, {result.resolved} resolved, "
        f"{result.failed} failed, {result.remaining} remaining"
    )
    return result


def requeue_rows(job_id) -> int:
    """
    Send a job's unresolved rows back to the queue.

    Returns:
        Number of rows requeued
    """
    job = MatchJob.objects.get(id=job_id)
    count = job.rows.filter(status=MatchRowStatus.UNRESOLVED).update(
        status=MatchRowStatus.QUEUED,
        updated_at=timezone.now(),
    )
    if count:
        job.status = MatchJobStatus.PARTIAL
        job.updated_at = timezone.now()
        job.save(update_fields=["status", "updated_at"])
        job.refresh_counters()

    logger.info(f"Requeued {count} rows for job {job_id}")
    return count
