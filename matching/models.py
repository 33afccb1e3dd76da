"""
Django models for the manufacturer URL matching service.

MatchJob groups rows submitted together (one distributor sheet upload).
MatchRow is the unit of work: input attributes written by the caller,
output attributes written by the resolution engine.
SourceIndexEntry is the long-lived lookup index of confirmed product pages,
shared by every row of a tenant and consulted before any web search.
"""

import uuid

from django.db import models
from django.utils import timezone

from matching.utils.normalization import (
    normalize_ndc_item_code,
    normalize_sku,
    normalize_supplier_key,
)


class MatchJobStatus(models.TextChoices):
    """Status of a match job."""

    QUEUED = "queued", "Queued"
    RUNNING = "running", "Running"
    PARTIAL = "partial", "Partially Processed"
    COMPLETED = "completed", "Completed"


class MatchRowStatus(models.TextChoices):
    """Resolution status of a single row."""

    QUEUED = "queued", "Queued"
    RESOLVED_CONFIDENT = "resolved_confident", "Resolved (Confident)"
    UNRESOLVED = "unresolved", "Unresolved"


class CandidateSource(models.TextChoices):
    """Where a candidate URL was discovered."""

    SEARCH_PROVIDER = "search_provider", "Search Provider"
    SITE_SEARCH = "site_search", "Site Search"
    INDEX = "index", "Source Index"


class MatchJob(models.Model):
    """
    A batch of rows submitted for manufacturer URL resolution.

    Counters are denormalized for the dashboard and refreshed after each
    processing batch.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant_id = models.UUIDField(db_index=True)
    created_by = models.CharField(max_length=200, blank=True)

    status = models.CharField(
        max_length=20, choices=MatchJobStatus.choices, default=MatchJobStatus.QUEUED
    )
    source_type = models.CharField(max_length=50, default="distributor_sheet")
    file_name = models.CharField(max_length=500, blank=True)
    meta = models.JSONField(default=dict, blank=True)

    # Counters
    input_count = models.IntegerField(default=0)
    resolved_count = models.IntegerField(default=0)
    unresolved_count = models.IntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "match_url_jobs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["tenant_id", "created_at"], name="match_url_j_tenant__5c1a2e_idx"),
            models.Index(fields=["status"], name="match_url_j_status_8e0f4b_idx"),
        ]

    def __str__(self):
        return f"Job {self.id} ({self.status})"

    def refresh_counters(self):
        """Recompute resolved/unresolved counters from the job's rows."""
        counts = dict(
            self.rows.order_by().values_list("status").annotate(total=models.Count("id"))
        )
        self.input_count = sum(counts.values())
        self.resolved_count = counts.get(MatchRowStatus.RESOLVED_CONFIDENT, 0)
        self.unresolved_count = counts.get(MatchRowStatus.UNRESOLVED, 0)
        self.updated_at = timezone.now()
        self.save(
            update_fields=[
                "input_count",
                "resolved_count",
                "unresolved_count",
                "updated_at",
            ]
        )


class MatchRow(models.Model):
    """
    One product row to resolve to its manufacturer product page.

    Invariant: status == resolved_confident implies exactly one entry in
    candidates, a non-null resolved_url and a confidence at or above the
    acceptance threshold in force when it was decided.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant_id = models.UUIDField(db_index=True)
    job = models.ForeignKey(
        MatchJob,
        on_delete=models.CASCADE,
        related_name="rows",
        null=True,
        blank=True,
    )
    row_id = models.CharField(max_length=100, blank=True)
    raw = models.JSONField(default=dict, blank=True)

    # Input attributes
    sku = models.CharField(max_length=200, blank=True)
    sku_norm = models.CharField(max_length=200, blank=True)
    ndc_item_code = models.CharField(max_length=100, blank=True)
    ndc_item_code_norm = models.CharField(max_length=100, blank=True)
    product_name = models.CharField(max_length=500, blank=True)
    brand_name = models.CharField(max_length=200, blank=True)
    supplier_name = models.CharField(max_length=200, blank=True)
    supplier_key = models.CharField(max_length=200, blank=True, db_index=True)

    # Output attributes
    status = models.CharField(
        max_length=30, choices=MatchRowStatus.choices, default=MatchRowStatus.QUEUED
    )
    candidates = models.JSONField(default=list, blank=True)
    resolved_url = models.URLField(max_length=2000, null=True, blank=True)
    resolved_domain = models.CharField(max_length=255, null=True, blank=True)
    confidence = models.FloatField(null=True, blank=True)
    matched_by = models.CharField(max_length=100, blank=True)
    reasons = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "match_url_job_rows"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["job", "status", "created_at"], name="match_url_j_job_id_3d7b91_idx"),
            models.Index(fields=["tenant_id", "supplier_key"], name="match_url_j_tenant__a40c6d_idx"),
        ]

    def __str__(self):
        label = self.sku or self.product_name or self.ndc_item_code
        return f"Row {label} ({self.status})"

    def save(self, *args, **kwargs):
        """Fill blank normalized keys from their raw inputs."""
        if not self.supplier_key:
            self.supplier_key = normalize_supplier_key(self.supplier_name)
        if not self.sku_norm:
            self.sku_norm = normalize_sku(self.sku)
        if not self.ndc_item_code_norm:
            self.ndc_item_code_norm = normalize_ndc_item_code(self.ndc_item_code)
        super().save(*args, **kwargs)


class SourceIndexEntry(models.Model):
    """
    Confirmed product page for a (tenant, supplier, SKU).

    Written with a conflict-resolving upsert; the most recent writer wins.
    Entries are never deleted by the resolution engine.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant_id = models.UUIDField()
    supplier_key = models.CharField(max_length=200)
    supplier_name = models.CharField(max_length=200, blank=True)

    sku = models.CharField(max_length=200, blank=True)
    sku_norm = models.CharField(max_length=200, blank=True)
    ndc_item_code = models.CharField(max_length=100, blank=True)
    ndc_item_code_norm = models.CharField(max_length=100, blank=True)
    product_name = models.CharField(max_length=500, blank=True)
    brand_name = models.CharField(max_length=200, blank=True)

    source_url = models.URLField(max_length=2000)
    source_domain = models.CharField(max_length=255)
    confidence = models.FloatField(default=1.0)
    signals = models.JSONField(default=dict, blank=True)

    last_seen_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "product_source_index"
        ordering = ["-last_seen_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant_id", "supplier_key", "sku_norm"],
                name="uniq_source_index_tenant_supplier_sku",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant_id", "supplier_key"], name="product_sou_tenant__f2b8c7_idx"),
        ]
        verbose_name_plural = "source index entries"

    def __str__(self):
        return f"{self.supplier_key}/{self.sku_norm} -> {self.source_domain}"
