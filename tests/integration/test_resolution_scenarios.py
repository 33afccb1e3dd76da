"""
End-to-end resolution scenarios against the database.

The search provider and page fetcher are in-memory doubles; the row and
index stores are the real Django ones.
"""

import pytest
import responses

from matching.models import MatchRowStatus, SourceIndexEntry
from matching.tests.fakes import FakeFetcher, FakeSearchProvider, product_page

WIDGET_URL = "https://acme.com/widget-pro"
RESELLER_URL = "https://somereseller.com/acme-widget-pro-abc123"
WIDGET_PAGE = product_page(title="Widget Pro", h1="Acme Widget Pro", body="Model ABC123 in stock")


@pytest.mark.django_db
class TestResolutionScenarios:
    def test_manufacturer_page_is_resolved(self, acme_row, make_resolver):
        """Single search hit on the manufacturer domain resolves confidently."""
        provider = FakeSearchProvider(default=[WIDGET_URL])
        fetcher = FakeFetcher({WIDGET_URL: WIDGET_PAGE})

        with make_resolver(provider, fetcher) as resolver:
            resolver.process_row(acme_row.id)

        acme_row.refresh_from_db()
        assert acme_row.status == MatchRowStatus.RESOLVED_CONFIDENT
        assert acme_row.resolved_url == WIDGET_URL
        assert acme_row.resolved_domain == "acme.com"
        assert acme_row.confidence >= 0.65
        assert acme_row.matched_by == "search_provider:manufacturer_only"
        assert len(acme_row.candidates) == 1

        entry = SourceIndexEntry.objects.get(tenant_id=acme_row.tenant_id, supplier_key="acme", sku_norm="abc123")
        assert entry.source_url == WIDGET_URL
        assert entry.signals["matched_by"] == "search_provider:manufacturer_only"

    def test_reseller_hit_is_filtered_out(self, acme_row, tenant_id, make_resolver):
        """Manufacturer domain known from the index; the reseller page is never validated."""
        SourceIndexEntry.objects.create(
            tenant_id=tenant_id,
            supplier_key="acme",
            sku_norm="other-sku",
            source_url="https://acme.com/other",
            source_domain="acme.com",
        )
        provider = FakeSearchProvider(default=[RESELLER_URL])
        fetcher = FakeFetcher({RESELLER_URL: WIDGET_PAGE})

        with make_resolver(provider, fetcher) as resolver:
            decision = resolver.process_row(acme_row.id)

        acme_row.refresh_from_db()
        assert acme_row.status == MatchRowStatus.UNRESOLVED
        assert acme_row.candidates == []
        assert acme_row.reasons == ["no_manufacturer_candidates"]
        assert decision.domain == "acme.com"
        assert RESELLER_URL not in fetcher.calls
        assert not SourceIndexEntry.objects.filter(sku_norm="abc123").exists()

    @responses.activate
    def test_no_credentials_and_no_index(self, acme_row, make_resolver, settings):
        """Without a search key or index entry the row ends unresolved with no network calls."""
        settings.SERPAPI_KEY = ""
        fetcher = FakeFetcher()

        with make_resolver(None, fetcher) as resolver:
            assert resolver.search_provider.is_configured is False
            resolver.process_row(acme_row.id)

        acme_row.refresh_from_db()
        assert acme_row.status == MatchRowStatus.UNRESOLVED
        assert acme_row.reasons == ["no_manufacturer_domain"]
        assert acme_row.candidates == []
        assert fetcher.calls == []
        assert len(responses.calls) == 0

    def test_approved_url_feeds_later_rows(self, acme_row, tenant_id, make_resolver):
        """An approval indexes the domain so a later row skips domain search."""
        from matching.models import MatchRow
        from matching.services.review import approve_row

        approve_row(acme_row.id, WIDGET_URL, approved_by="reviewer")
        other = MatchRow.objects.create(
            tenant_id=tenant_id, sku="XYZ9", supplier_name="Acme", product_name="Acme Gadget"
        )
        gadget_url = "https://acme.com/gadget"
        provider = FakeSearchProvider(default=[gadget_url])
        fetcher = FakeFetcher({gadget_url: product_page(h1="Acme Gadget", body="XYZ9")})

        with make_resolver(provider, fetcher) as resolver:
            trace = resolver.debug_row_trace(other.id)

        assert trace["domain"] == "acme.com"
        assert trace["domain_method"] == "index"
        assert not any("official" in search["query"] for search in trace["searches"])
        assert trace["decision"]["resolved_url"] == gadget_url

    def test_indexed_row_resolves_without_search_credentials(self, acme_row, make_resolver, settings):
        """A confirmed page for the exact supplier and SKU is reused even when search is unavailable."""
        settings.SERPAPI_KEY = ""
        SourceIndexEntry.objects.create(
            tenant_id=acme_row.tenant_id,
            supplier_key="acme",
            sku_norm="abc123",
            source_url=WIDGET_URL,
            source_domain="acme.com",
            confidence=0.95,
        )
        fetcher = FakeFetcher()

        with make_resolver(None, fetcher) as resolver:
            resolver.process_row(acme_row.id)

        acme_row.refresh_from_db()
        assert acme_row.status == MatchRowStatus.RESOLVED_CONFIDENT
        assert acme_row.resolved_url == WIDGET_URL
        assert acme_row.matched_by == "index:supplier+sku"
        assert len(acme_row.candidates) == 1
        assert fetcher.calls == []
