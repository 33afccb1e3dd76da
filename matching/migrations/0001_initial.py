"""
Migration: Create match job, match row and product source index tables.
"""

import uuid
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="MatchJob",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("tenant_id", models.UUIDField(db_index=True)),
                ("created_by", models.CharField(blank=True, max_length=200)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("running", "Running"),
                            ("partial", "Partially Processed"),
                            ("completed", "Completed"),
                        ],
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("source_type", models.CharField(default="distributor_sheet", max_length=50)),
                ("file_name", models.CharField(blank=True, max_length=500)),
                ("meta", models.JSONField(blank=True, default=dict)),
                ("input_count", models.IntegerField(default=0)),
                ("resolved_count", models.IntegerField(default=0)),
                ("unresolved_count", models.IntegerField(default=0)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "match_url_jobs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["tenant_id", "created_at"],
                        name="match_url_j_tenant__5c1a2e_idx",
                    ),
                    models.Index(fields=["status"], name="match_url_j_status_8e0f4b_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="MatchRow",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("tenant_id", models.UUIDField(db_index=True)),
                ("row_id", models.CharField(blank=True, max_length=100)),
                ("raw", models.JSONField(blank=True, default=dict)),
                ("sku", models.CharField(blank=True, max_length=200)),
                ("sku_norm", models.CharField(blank=True, max_length=200)),
                ("ndc_item_code", models.CharField(blank=True, max_length=100)),
                ("ndc_item_code_norm", models.CharField(blank=True, max_length=100)),
                ("product_name", models.CharField(blank=True, max_length=500)),
                ("brand_name", models.CharField(blank=True, max_length=200)),
                ("supplier_name", models.CharField(blank=True, max_length=200)),
                ("supplier_key", models.CharField(blank=True, db_index=True, max_length=200)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("resolved_confident", "Resolved (Confident)"),
                            ("unresolved", "Unresolved"),
                        ],
                        default="queued",
                        max_length=30,
                    ),
                ),
                ("candidates", models.JSONField(blank=True, default=list)),
                ("resolved_url", models.URLField(blank=True, max_length=2000, null=True)),
                ("resolved_domain", models.CharField(blank=True, max_length=255, null=True)),
                ("confidence", models.FloatField(blank=True, null=True)),
                ("matched_by", models.CharField(blank=True, max_length=100)),
                ("reasons", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "job",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rows",
                        to="matching.matchjob",
                    ),
                ),
            ],
            options={
                "db_table": "match_url_job_rows",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["job", "status", "created_at"],
                        name="match_url_j_job_id_3d7b91_idx",
                    ),
                    models.Index(
                        fields=["tenant_id", "supplier_key"],
                        name="match_url_j_tenant__a40c6d_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SourceIndexEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("tenant_id", models.UUIDField()),
                ("supplier_key", models.CharField(max_length=200)),
                ("supplier_name", models.CharField(blank=True, max_length=200)),
                ("sku", models.CharField(blank=True, max_length=200)),
                ("sku_norm", models.CharField(blank=True, max_length=200)),
                ("ndc_item_code", models.CharField(blank=True, max_length=100)),
                ("ndc_item_code_norm", models.CharField(blank=True, max_length=100)),
                ("product_name", models.CharField(blank=True, max_length=500)),
                ("brand_name", models.CharField(blank=True, max_length=200)),
                ("source_url", models.URLField(max_length=2000)),
                ("source_domain", models.CharField(max_length=255)),
                ("confidence", models.FloatField(default=1.0)),
                ("signals", models.JSONField(blank=True, default=dict)),
                ("last_seen_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "product_source_index",
                "ordering": ["-last_seen_at"],
                "verbose_name_plural": "source index entries",
                "indexes": [
                    models.Index(
                        fields=["tenant_id", "supplier_key"],
                        name="product_sou_tenant__f2b8c7_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["tenant_id", "supplier_key", "sku_norm"],
                        name="uniq_source_index_tenant_supplier_sku",
                    ),
                ],
            },
        ),
    ]
