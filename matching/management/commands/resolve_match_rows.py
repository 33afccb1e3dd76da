"""
Management command to resolve match rows from the command line.

Uses live SerpAPI quota and fetches real pages.

Usage:
    # Resolve one row and persist the outcome
    python manage.py resolve_match_rows --row <uuid>

    # Print a diagnostic trace for a row without writing anything
    python manage.py resolve_match_rows --row <uuid> --trace

    # Process the next batch of queued rows of a job
    python manage.py resolve_match_rows --job <uuid> --limit 10
"""

import json
import logging

from django.core.management.base import BaseCommand, CommandError

from matching.models import MatchJob, MatchRow
from matching.services.resolver import build_resolver
from matching.services.review import process_job_batch

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Resolve match rows to manufacturer product pages"

    def add_arguments(self, parser):
        parser.add_argument(
            "--row",
            type=str,
            help="MatchRow id to resolve",
        )
        parser.add_argument(
            "--job",
            type=str,
            help="MatchJob id whose queued rows should be processed",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Batch size for --job (default MATCH_BATCH_LIMIT)",
        )
        parser.add_argument(
            "--trace",
            action="store_true",
            help="Print a trace for --row instead of persisting the outcome",
        )

    def handle(self, *args, **options):
        row_id = options["row"]
        job_id = options["job"]

        if bool(row_id) == bool(job_id):
            raise CommandError("Pass exactly one of --row or --job")

        if row_id:
            self._handle_row(row_id, trace=options["trace"])
        else:
            self._handle_job(job_id, limit=options["limit"])

    def _handle_row(self, row_id, trace=False):
        if not MatchRow.objects.filter(id=row_id).exists():
            raise CommandError(f"MatchRow {row_id} not found")

        with build_resolver() as resolver:
            if trace:
                data = resolver.debug_row_trace(row_id)
                self.stdout.write(json.dumps(data, indent=2, default=str))
                return

            decision = resolver.process_row(row_id)

        style = self.style.SUCCESS if decision.is_resolved else self.style.WARNING
        self.stdout.write(
            style(
                f"{row_id}: {decision.status} ({decision.reason}) "
                f"confidence={decision.confidence:.2f} url={decision.resolved_url or '-'}"
            )
        )

    def _handle_job(self, job_id, limit=None):
        if not MatchJob.objects.filter(id=job_id).exists():
            raise CommandError(f"MatchJob {job_id} not found")

        result = process_job_batch(job_id, limit=limit)
        self.stdout.write(
            self.style.SUCCESS(
                f"Job {job_id}: processed={result.processed} resolved={result.resolved} "
                f"unresolved={result.unresolved} failed={result.failed} "
                f"remaining={result.remaining} status={result.status}"
            )
        )
        for error in result.errors:
            self.stdout.write(self.style.ERROR(f"  {error}"))
