"""
HTML signal extraction for candidate pages.

All markup handling lives here. The scoring code in page_validator only
sees a PageSignals value, never raw HTML.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 500

# Links never worth validating as product pages
SKIP_LINK_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"\.(jpg|jpeg|png|gif|svg|webp|ico|css|js|pdf|zip|exe)(\?|$)",
        r"^mailto:",
        r"^tel:",
        r"^javascript:",
        r"/(cart|checkout|login|signup|account|wishlist|compare|search|catalogsearch)(/|\?|#|$)",
    ]
]


@dataclass
class PageSignals:
    """Text signals extracted from one HTML page."""

    title: str = ""
    h1: str = ""
    structured_blocks: List[Dict[str, Any]] = field(default_factory=list)
    body_lower: str = ""
    snippet: str = ""

    def product_blocks(self) -> List[Dict[str, Any]]:
        """Structured blocks that describe a product."""
        return [block for block in self.structured_blocks if _is_product_block(block)]


def _is_product_block(block: Dict[str, Any]) -> bool:
    types = block.get("@type")
    if isinstance(types, str):
        types = [types]
    if isinstance(types, list):
        if any(isinstance(t, str) and "product" in t.lower() for t in types):
            return True
    return bool(block.get("name") or block.get("sku"))


def _flatten_json_ld(data: Any) -> Iterable[Dict[str, Any]]:
    """Yield every object in a JSON-LD payload, expanding lists and @graph."""
    if isinstance(data, list):
        for item in data:
            yield from _flatten_json_ld(item)
    elif isinstance(data, dict):
        graph = data.get("@graph")
        if isinstance(graph, list):
            yield from _flatten_json_ld(graph)
        yield data


def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def extract_page_signals(html: Optional[str]) -> PageSignals:
    """
    Extract title, first h1, JSON-LD blocks and lowercase body text.

    Malformed JSON-LD blocks are skipped.

    Args:
        html: Raw HTML body

    Returns:
        PageSignals (empty for empty input)
    """
    if not html:
        return PageSignals()

    soup = BeautifulSoup(html, "html.parser")

    blocks: List[Dict[str, Any]] = []
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping malformed JSON-LD block")
            continue
        blocks.extend(_flatten_json_ld(data))

    title = _collapse(soup.title.get_text()) if soup.title else ""
    h1_tag = soup.find("h1")
    h1 = _collapse(h1_tag.get_text(" ")) if h1_tag else ""

    return PageSignals(
        title=title,
        h1=h1,
        structured_blocks=blocks,
        body_lower=html.lower(),
        snippet=_collapse(soup.get_text(" "))[:SNIPPET_LENGTH],
    )


def extract_links(html: Optional[str], base_url: str) -> List[str]:
    """
    Extract absolute, fragment-free hyperlink targets from a page.

    Asset, cart, account and search links are skipped. Order of first
    appearance is preserved.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    seen: Set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href", "").strip()
        if not href or href.startswith("#"):
            continue
        if any(regex.search(href) for regex in SKIP_LINK_PATTERNS):
            continue

        url, _ = urldefrag(urljoin(base_url, href))
        if urlparse(url).scheme not in ("http", "https"):
            continue
        if url in seen:
            continue
        seen.add(url)
        links.append(url)

    return links
