"""
Tests for the matching admin pages.
"""

import pytest

from matching.admin import MatchRowAdmin
from matching.models import MatchJob, MatchRow, SourceIndexEntry

pytestmark = pytest.mark.django_db


@pytest.fixture
def seeded(tenant_id):
    job = MatchJob.objects.create(tenant_id=tenant_id, file_name="acme.csv")
    MatchRow.objects.create(tenant_id=tenant_id, job=job, sku="ABC123", supplier_name="Acme", confidence=0.912)
    SourceIndexEntry.objects.create(
        tenant_id=tenant_id,
        supplier_key="acme",
        sku_norm="abc123",
        source_url="https://acme.com/widget-pro",
        source_domain="acme.com",
    )
    return job


@pytest.mark.parametrize("model", ["matchjob", "matchrow", "sourceindexentry"])
def test_changelist_renders(admin_client, seeded, model):
    response = admin_client.get(f"/admin/matching/{model}/")
    assert response.status_code == 200


def test_confidence_display():
    admin_view = MatchRowAdmin(MatchRow, None)

    assert admin_view.confidence_display(MatchRow(confidence=0.912)) == "0.91"
    assert admin_view.confidence_display(MatchRow()) == "-"
