"""
Celery tasks for manufacturer URL resolution.

Tasks:
- resolve_match_row: resolve a single row
- process_match_job: resolve the next batch of queued rows of a job
- requeue_match_job: send a job's unresolved rows back to the queue

The engine performs no retries; a failed task surfaces in Celery and the
row stays queued for the next batch.
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task

from matching.services.resolver import build_resolver
from matching.services.review import process_job_batch, requeue_rows

logger = logging.getLogger(__name__)


@shared_task(name="matching.tasks.resolve_match_row")
def resolve_match_row(row_id: str) -> Dict[str, Any]:
    """
    Resolve one MatchRow and persist the outcome.

    Args:
        row_id: MatchRow id

    Returns:
        Dict with row_id, status, confidence and resolved_url
    """
    logger.info(f"Resolving match row {row_id}")

    with build_resolver() as resolver:
        decision = resolver.process_row(row_id)

    return {
        "row_id": str(row_id),
        "status": str(decision.status),
        "reason": decision.reason,
        "confidence": round(decision.confidence, 4),
        "resolved_url": decision.resolved_url,
    }


@shared_task(name="matching.tasks.process_match_job")
def process_match_job(job_id: str, limit: Optional[int] = None) -> Dict[str, Any]:
    """
    Process the next batch of queued rows for a job.

    Args:
        job_id: MatchJob id
        limit: Batch size (default MATCH_BATCH_LIMIT)

    Returns:
        Batch summary dict
    """
    logger.info(f"Processing match job {job_id} (limit={limit})")
    return process_job_batch(job_id, limit=limit).to_dict()


@shared_task(name="matching.tasks.requeue_match_job")
def requeue_match_job(job_id: str) -> Dict[str, Any]:
    """Requeue a job's unresolved rows."""
    count = requeue_rows(job_id)
    return {"job_id": str(job_id), "requeued": count}
