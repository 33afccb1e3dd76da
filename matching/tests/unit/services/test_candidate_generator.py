"""
Tests for candidate discovery.
"""

from matching.services.candidate_generator import CandidateGenerator
from matching.services.domain_trust import DomainTrustPolicy
from matching.services.query_builder import QueryBuilder
from matching.services.trace import TraceCollector
from matching.tests.fakes import FakeFetcher, FakeSearchProvider


def _generator(provider, fetcher=None, allow_resellers=False, max_results=5):
    return CandidateGenerator(
        provider,
        fetcher or FakeFetcher(),
        DomainTrustPolicy(allow_resellers=allow_resellers),
        max_results=max_results,
    )


class TestSearch:
    def test_site_queries_run_before_unrestricted_queries(self, row_input):
        provider = FakeSearchProvider()
        queries = QueryBuilder().build_queries(row_input)

        _generator(provider).generate(queries, "acme.com", row_input)

        issued = [query for query, _ in provider.calls]
        assert issued[:3] == [
            "site:acme.com ABC123",
            'site:acme.com "Acme Widget Pro"',
            "site:acme.com ABC123 Acme Widget Pro",
        ]
        assert issued[3:] == queries

    def test_stops_at_result_cap(self, row_input):
        provider = FakeSearchProvider(
            default=[f"https://acme.com/p/{i}" for i in range(3)],
            results={"site:acme.com ABC123": [f"https://acme.com/x/{i}" for i in range(3)]},
        )

        pool = _generator(provider, max_results=4).generate(["ABC123"], "acme.com", row_input)

        assert len(pool.all) == 4
        assert len(provider.calls) == 2

    def test_dedupes_by_url_without_fragment(self, row_input):
        provider = FakeSearchProvider(
            results={
                "ABC123": [
                    "https://acme.com/widget#specs",
                    "https://acme.com/widget",
                    "https://acme.com/widget#reviews",
                ]
            }
        )

        pool = _generator(provider).generate(["ABC123"], None, row_input)

        assert [c.url for c in pool.all] == ["https://acme.com/widget"]

    def test_unsafe_urls_are_dropped(self, row_input):
        provider = FakeSearchProvider(
            results={"ABC123": ["http://127.0.0.1/admin", "ftp://acme.com/file", "https://acme.com/ok"]}
        )

        pool = _generator(provider).generate(["ABC123"], None, row_input)

        assert [c.url for c in pool.all] == ["https://acme.com/ok"]

    def test_failing_query_is_recorded_and_skipped(self, row_input):
        provider = FakeSearchProvider(
            results={"second": ["https://acme.com/widget"]},
            failing=["first"],
        )
        trace = TraceCollector()

        pool = _generator(provider, allow_resellers=True).generate(["first", "second"], None, row_input, trace)

        assert [c.url for c in pool.all] == ["https://acme.com/widget"]
        assert trace.data["searches"][0]["query"] == "first"
        assert "error" in trace.data["searches"][0]

    def test_filter_keeps_only_manufacturer_hosts(self, row_input):
        provider = FakeSearchProvider(
            results={"ABC123": ["https://reseller.com/abc123", "https://shop.acme.com/abc123"]}
        )

        pool = _generator(provider).generate(["ABC123"], "acme.com", row_input)

        assert len(pool.all) == 2
        assert [c.url for c in pool.filtered] == ["https://shop.acme.com/abc123"]
        assert pool.filtered[0].source == "search_provider"


class TestSiteSearchFallback:
    def test_site_search_links_become_candidates(self, row_input):
        search_page = """
        <a href="/products/widget-pro">Acme Widget Pro</a>
        <a href="https://reseller.com/widget">Elsewhere</a>
        <a href="/cart">Cart</a>
        """
        fetcher = FakeFetcher({"https://acme.com/search?q=ABC123": search_page})
        trace = TraceCollector()

        pool = _generator(FakeSearchProvider(), fetcher).generate([], "acme.com", row_input, trace)

        assert [c.url for c in pool.all] == ["https://acme.com/products/widget-pro"]
        assert pool.all[0].source == "site_search"
        assert trace.data["site_search"][0]["status_code"] == 200

    def test_site_search_failures_are_skipped(self, row_input):
        fetcher = FakeFetcher(
            {"https://acme.com/search?query=ABC123": '<a href="/p/widget">Widget</a>'},
            raising=["https://acme.com/search?q=ABC123"],
        )

        pool = _generator(FakeSearchProvider(), fetcher).generate([], "acme.com", row_input)

        assert [c.url for c in pool.all] == ["https://acme.com/p/widget"]

    def test_no_site_search_without_domain(self, row_input):
        fetcher = FakeFetcher()

        pool = _generator(FakeSearchProvider(), fetcher).generate(["ABC123"], None, row_input)

        assert pool.all == []
        assert fetcher.calls == []


class TestTraceRecording:
    def test_trace_keeps_raw_provider_items(self, row_input):
        provider = FakeSearchProvider(results={"ABC123": ["https://acme.com/widget"]})
        trace = TraceCollector()

        _generator(provider).generate(["ABC123"], None, row_input, trace)

        search = trace.data["searches"][0]
        assert search["raw"] == [{"position": 1, "link": "https://acme.com/widget"}]
        assert search["results"][0]["url"] == "https://acme.com/widget"
