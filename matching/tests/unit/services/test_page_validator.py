"""
Tests for page scoring and candidate validation.
"""

import json

import httpx
import pytest

from matching.fetchers.page_fetcher import HttpxPageFetcher
from matching.services.page_signals import PageSignals, extract_page_signals
from matching.services.page_validator import (
    BODY_SKU_WEIGHT,
    DOMAIN_BONUS,
    JSONLD_SKU_WEIGHT,
    Expectations,
    PageValidator,
    score_page,
    token_overlap,
)
from matching.services.types import Candidate
from matching.tests.fakes import FakeFetcher, product_page

EXPECT = Expectations(sku="ABC123", product_name="Acme Widget Pro", domain_hint="acme.com")


class TestTokenOverlap:
    def test_identical(self):
        assert token_overlap("Acme Widget Pro", "acme widget pro") == 1.0

    def test_divides_by_larger_token_set(self):
        # 2 shared tokens, larger set has 4 tokens
        assert token_overlap("Widget Pro", "Acme Widget Pro Max") == pytest.approx(0.5)

    def test_punctuation_ignored(self):
        assert token_overlap("Widget-Pro", "widget pro") == 1.0

    def test_empty(self):
        assert token_overlap("", "anything") == 0.0


class TestScorePage:
    """Tests for the additive scoring model."""

    def test_empty_page_scores_zero(self):
        score, matched = score_page(PageSignals(), EXPECT, "https://other.com/x")
        assert score == 0.0
        assert matched == []

    def test_body_sku_match_strictly_increases_score(self):
        url = "https://other.com/x"
        base, _ = score_page(PageSignals(body_lower="<p>nothing here</p>"), EXPECT, url)
        with_sku, matched = score_page(PageSignals(body_lower="<p>part abc123</p>"), EXPECT, url)

        assert base == 0.0
        assert with_sku > base
        assert with_sku == pytest.approx(BODY_SKU_WEIGHT)
        assert matched == ["body.sku"]

    def test_json_ld_sku_and_name(self):
        html = product_page(json_ld=json.dumps({"@type": "Product", "sku": "abc123", "name": "Acme Widget Pro"}))
        score, matched = score_page(extract_page_signals(html), EXPECT, "https://other.com/x")

        assert "jsonld.sku" in matched
        assert "jsonld.name:1.00" in matched
        assert score == 1.0

    def test_title_and_h1_caps(self):
        signals = PageSignals(title="Acme Widget Pro", h1="Acme Widget Pro")
        score, matched = score_page(signals, EXPECT, "https://other.com/x")

        # title capped at 0.5, h1 at 0.6
        assert score == pytest.approx(1.0)
        assert matched == ["title:1.00", "h1:1.00"]

        title_only, _ = score_page(PageSignals(title="Acme Widget Pro"), EXPECT, "https://other.com/x")
        assert title_only == pytest.approx(0.5)

    def test_domain_bonus(self):
        score, matched = score_page(PageSignals(), EXPECT, "https://shop.acme.com/widget")
        assert score == pytest.approx(DOMAIN_BONUS)
        assert matched == ["domain.match"]

    def test_ndc_match(self):
        expect = Expectations(ndc_item_code="NDC-777")
        score, matched = score_page(PageSignals(body_lower="code ndc-777"), expect, "https://x.com")
        assert score == pytest.approx(0.6)
        assert matched == ["body.ndc"]

    def test_score_is_clamped(self):
        html = product_page(
            title="Acme Widget Pro",
            h1="Acme Widget Pro",
            body="ABC123",
            json_ld=json.dumps({"@type": "Product", "sku": "ABC123", "name": "Acme Widget Pro"}),
        )
        score, _ = score_page(extract_page_signals(html), EXPECT, "https://acme.com/widget")

        assert JSONLD_SKU_WEIGHT + BODY_SKU_WEIGHT > 1.0
        assert score == 1.0


class TestPageValidator:
    """Tests for fetch-and-score."""

    def test_successful_fetch_is_scored(self):
        url = "https://acme.com/widget-pro"
        fetcher = FakeFetcher({url: product_page(h1="Acme Widget Pro", body="ABC123")})

        result = PageValidator(fetcher).validate(Candidate(url=url, source="search_provider"), EXPECT)

        assert result.score == 1.0
        assert result.domain == "acme.com"
        assert result.error is None
        assert "body.sku" in result.matched_tokens

    def test_non_2xx_scores_zero_and_is_kept(self):
        url = "https://acme.com/gone"
        fetcher = FakeFetcher({url: (500, "oops")})

        result = PageValidator(fetcher).validate(Candidate(url=url, source="search_provider"), EXPECT)

        assert result.score == 0.0
        assert result.error == "HTTP 500"
        assert result.to_record()["url"] == url

    def test_fetch_exception_scores_zero(self):
        url = "https://acme.com/reset"
        fetcher = FakeFetcher(raising=[url])

        result = PageValidator(fetcher).validate(Candidate(url=url, source="search_provider"), EXPECT)

        assert result.score == 0.0
        assert "connection reset" in result.error

    def test_validate_all_respects_limit(self):
        fetcher = FakeFetcher()
        candidates = [Candidate(url=f"https://acme.com/{i}", source="search_provider") for i in range(4)]

        results = PageValidator(fetcher).validate_all(candidates, EXPECT, limit=2)

        assert len(results) == 2
        assert fetcher.calls == ["https://acme.com/0", "https://acme.com/1"]

    def test_blocked_redirect_scores_zero_without_body(self):
        def handler(request):
            if request.url.host == "acme.com":
                return httpx.Response(302, headers={"Location": "http://169.254.169.254/latest/meta-data/"})
            return httpx.Response(200, text="<h1>Acme Widget Pro</h1> ABC123 iam-secret")

        url = "https://acme.com/widget-pro"
        with HttpxPageFetcher(timeout=2, transport=httpx.MockTransport(handler)) as fetcher:
            result = PageValidator(fetcher).validate(Candidate(url=url, source="search_provider"), EXPECT)

        assert result.score == 0.0
        assert result.error == "unsafe_redirect"
        assert "iam-secret" not in result.to_record()["snippet"]
