"""
Fixtures for the matching app test suite.
"""

import uuid

import pytest


@pytest.fixture
def tenant_id():
    return str(uuid.uuid4())


@pytest.fixture
def row_input(tenant_id):
    """The Acme Widget Pro row used throughout the resolver tests."""
    from matching.services.types import RowInput

    return RowInput(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id,
        sku="ABC123",
        sku_norm="abc123",
        product_name="Acme Widget Pro",
        supplier_name="Acme",
        supplier_key="acme",
    )


@pytest.fixture
def match_row(db, tenant_id):
    """A queued MatchRow for Acme Widget Pro."""
    from matching.models import MatchRow

    return MatchRow.objects.create(
        tenant_id=tenant_id,
        sku="ABC123",
        product_name="Acme Widget Pro",
        supplier_name="Acme",
    )


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def staff_user(db):
    from django.contrib.auth import get_user_model

    return get_user_model().objects.create_user(username="reviewer", password="pw")
