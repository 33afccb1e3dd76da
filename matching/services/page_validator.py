"""
Page Validator Service.

Fetches a candidate page and computes an additive confidence score in
[0, 1] from independent signals. Each signal contributes at most once:

    Signal                                   Weight
    ---------------------------------------  ---------------------
    JSON-LD sku equals expected SKU          0.8
    JSON-LD name token overlap (ov)          min(0.6, ov * 0.6)
    SKU found in page body                   0.6
    NDC item code found in page body         0.6
    <title> token overlap                    min(0.5, ov * 0.6)
    first <h1> token overlap                 min(0.6, ov * 0.6)
    domain hint contained in candidate host  0.12

Token overlap is |tokens(expected) & tokens(text)| / max(|expected|, |text|)
over lowercase token sets with punctuation stripped.

A fetch exception or non-2xx response scores exactly 0 and the candidate is
kept, so the decision step can still report the best evidence available.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from matching.services.page_signals import PageSignals, extract_page_signals
from matching.services.types import Candidate, ValidationResult
from matching.utils.normalization import hostname_from_url, tokenize

logger = logging.getLogger(__name__)

JSONLD_SKU_WEIGHT = 0.8
JSONLD_NAME_CAP = 0.6
BODY_SKU_WEIGHT = 0.6
BODY_NDC_WEIGHT = 0.6
TITLE_CAP = 0.5
H1_CAP = 0.6
OVERLAP_SCALE = 0.6
DOMAIN_BONUS = 0.12


def token_overlap(expected: str, text: str) -> float:
    """
    Fraction of word tokens shared between two strings.

    Example:
        >>> token_overlap("Acme Widget Pro", "Widget Pro | Acme")
        1.0
    """
    expected_tokens = set(tokenize(expected))
    text_tokens = set(tokenize(text))
    if not expected_tokens or not text_tokens:
        return 0.0
    shared = len(expected_tokens & text_tokens)
    return shared / max(len(expected_tokens), len(text_tokens))


@dataclass(frozen=True)
class Expectations:
    """What the page should mention for the row being resolved."""

    sku: str = ""
    ndc_item_code: str = ""
    product_name: str = ""
    domain_hint: str = ""


def score_page(
    signals: PageSignals,
    expectations: Expectations,
    url: str,
) -> Tuple[float, List[str]]:
    """
    Score a page against the expected product.

    Args:
        signals: Extracted page signals
        expectations: Expected SKU, NDC code, name and domain hint
        url: Candidate URL (used for the domain bonus)

    Returns:
        Tuple of (score clamped to [0, 1], matched signal labels)
    """
    score = 0.0
    matched: List[str] = []

    sku_lower = expectations.sku.lower()
    name = expectations.product_name

    blocks = signals.product_blocks()
    if sku_lower and any(
        str(block.get("sku", "")).strip().lower() == sku_lower for block in blocks
    ):
        score += JSONLD_SKU_WEIGHT
        matched.append("jsonld.sku")

    if name:
        best_overlap = max(
            (token_overlap(name, str(block.get("name", ""))) for block in blocks),
            default=0.0,
        )
        if best_overlap > 0:
            score += min(JSONLD_NAME_CAP, best_overlap * OVERLAP_SCALE)
            matched.append(f"jsonld.name:{best_overlap:.2f}")

    if sku_lower and sku_lower in signals.body_lower:
        score += BODY_SKU_WEIGHT
        matched.append("body.sku")

    ndc = expectations.ndc_item_code.lower()
    if ndc and ndc in signals.body_lower:
        score += BODY_NDC_WEIGHT
        matched.append("body.ndc")

    if name and signals.title:
        overlap = token_overlap(name, signals.title)
        if overlap > 0:
            score += min(TITLE_CAP, overlap * OVERLAP_SCALE)
            matched.append(f"title:{overlap:.2f}")

    if name and signals.h1:
        overlap = token_overlap(name, signals.h1)
        if overlap > 0:
            score += min(H1_CAP, overlap * OVERLAP_SCALE)
            matched.append(f"h1:{overlap:.2f}")

    host = hostname_from_url(url) or ""
    hint = expectations.domain_hint.lower()
    if hint and host and hint in host:
        score += DOMAIN_BONUS
        matched.append("domain.match")

    return max(0.0, min(1.0, score)), matched


class PageValidator:
    """
    Fetches candidates and scores them.

    Usage:
        validator = PageValidator(fetcher)
        result = validator.validate(candidate, expectations)
    """

    def __init__(self, fetcher):
        self.fetcher = fetcher

    def validate(self, candidate: Candidate, expectations: Expectations) -> ValidationResult:
        """
        Fetch and score one candidate.

        Returns:
            ValidationResult; score is 0 with error set when the fetch failed
        """
        domain = hostname_from_url(candidate.url)
        try:
            response = self.fetcher.fetch(candidate.url)
        except Exception as e:
            logger.warning(f"Validation fetch raised for {candidate.url}: {e}")
            return ValidationResult(
                url=candidate.url,
                score=0.0,
                source=candidate.source,
                domain=domain,
                title=candidate.title,
                snippet=candidate.snippet or "",
                error=str(e) or e.__class__.__name__,
            )

        if not response.success:
            logger.info(f"Validation fetch failed for {candidate.url}: {response.error}")
            return ValidationResult(
                url=candidate.url,
                score=0.0,
                source=candidate.source,
                domain=domain,
                title=candidate.title,
                snippet=candidate.snippet or "",
                status_code=response.status_code or None,
                error=response.error or f"HTTP {response.status_code}",
            )

        signals = extract_page_signals(response.content)
        score, matched = score_page(signals, expectations, candidate.url)

        logger.debug(f"Scored {candidate.url}: {score:.2f} {matched}")
        return ValidationResult(
            url=candidate.url,
            score=score,
            source=candidate.source,
            domain=domain,
            matched_tokens=matched,
            title=signals.title or candidate.title,
            snippet=signals.snippet,
            status_code=response.status_code,
        )

    def validate_all(
        self,
        candidates: List[Candidate],
        expectations: Expectations,
        limit: Optional[int] = None,
    ) -> List[ValidationResult]:
        """Validate candidates in order, up to limit."""
        if limit is not None:
            candidates = candidates[:limit]
        return [self.validate(candidate, expectations) for candidate in candidates]
