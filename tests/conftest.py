"""
Pytest configuration and fixtures for the end-to-end matching tests.

The test database is created by pytest-django from the app migrations
(DJANGO_SETTINGS_MODULE=config.settings.test, in-memory SQLite).
"""

import uuid

import pytest


@pytest.fixture
def tenant_id():
    return uuid.uuid4()


@pytest.fixture
def acme_row(db, tenant_id):
    """Row {sku: ABC123, supplier: Acme, product: Acme Widget Pro}."""
    from matching.models import MatchRow

    return MatchRow.objects.create(
        tenant_id=tenant_id,
        sku="ABC123",
        supplier_name="Acme",
        product_name="Acme Widget Pro",
    )


@pytest.fixture
def make_resolver():
    """Build a resolver with injected search provider, fetcher and index store."""
    from matching.services.resolver import build_resolver

    def _make(search_provider, fetcher, index_store=None):
        return build_resolver(
            search_provider=search_provider,
            fetcher=fetcher,
            index_store=index_store,
        )

    return _make
