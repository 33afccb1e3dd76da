"""
Django admin configuration for matching models.

Jobs and rows are read-mostly: the engine owns the output fields, so they
are shown read-only. Index entries can be corrected by hand.
"""

from django.contrib import admin

from matching.models import MatchJob, MatchRow, SourceIndexEntry


@admin.register(MatchJob)
class MatchJobAdmin(admin.ModelAdmin):
    """Admin interface for match jobs."""

    list_display = [
        "id",
        "tenant_id",
        "file_name",
        "status",
        "input_count",
        "resolved_count",
        "unresolved_count",
        "created_at",
    ]
    list_filter = ["status", "source_type", ("created_at", admin.DateFieldListFilter)]
    search_fields = ["id", "file_name", "created_by"]
    readonly_fields = [
        "id",
        "input_count",
        "resolved_count",
        "unresolved_count",
        "created_at",
        "updated_at",
    ]


@admin.register(MatchRow)
class MatchRowAdmin(admin.ModelAdmin):
    """Admin interface for match rows."""

    list_display = [
        "id",
        "sku",
        "product_name",
        "supplier_name",
        "status",
        "confidence_display",
        "resolved_domain",
        "matched_by",
    ]
    list_filter = ["status", "matched_by"]
    search_fields = ["sku", "product_name", "supplier_name", "resolved_url"]
    raw_id_fields = ["job"]
    readonly_fields = [
        "id",
        "status",
        "candidates",
        "resolved_url",
        "resolved_domain",
        "confidence",
        "matched_by",
        "reasons",
        "created_at",
        "updated_at",
    ]

    @admin.display(description="Confidence", ordering="confidence")
    def confidence_display(self, obj):
        if obj.confidence is None:
            return "-"
        return f"{obj.confidence:.2f}"


@admin.register(SourceIndexEntry)
class SourceIndexEntryAdmin(admin.ModelAdmin):
    """Admin interface for the product source index."""

    list_display = [
        "supplier_key",
        "sku_norm",
        "source_domain",
        "confidence",
        "last_seen_at",
    ]
    list_filter = ["source_domain"]
    search_fields = ["supplier_key", "sku_norm", "source_url", "product_name"]
    readonly_fields = ["id", "created_at", "updated_at", "last_seen_at"]
