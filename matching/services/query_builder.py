"""
Query construction for manufacturer URL discovery.

Queries are ordered from most to least specific. A SKU paired with the
supplier is the strongest evidence a search engine can match on; the quoted
product name is the weakest and comes last.
"""

import logging
from typing import Iterable, List

from matching.services.types import RowInput

logger = logging.getLogger(__name__)


def dedupe_queries(queries: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive duplicates, keeping first occurrence."""
    seen = set()
    result = []
    for query in queries:
        query = " ".join(query.split())
        if not query:
            continue
        key = query.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(query)
    return result


class QueryBuilder:
    """
    Builds search queries for a row.

    Usage:
        builder = QueryBuilder()
        queries = builder.build_queries(row)
        site_queries = builder.build_site_queries("acme.com", row)
    """

    OFFICIAL_SITE_TEMPLATES = [
        "{name} official site",
        "{name} manufacturer official website",
        "{name} company website",
        "{name} official website",
    ]

    def build_queries(self, row: RowInput) -> List[str]:
        """
        Build the unrestricted query list for a row.

        Args:
            row: Normalized row input

        Returns:
            Unique, non-empty queries in priority order
        """
        queries = []

        if row.sku:
            if row.supplier_name:
                queries.append(f"{row.sku} {row.supplier_name}")
            if row.supplier_key:
                queries.append(f"{row.sku} {row.supplier_key}")
            if row.product_name:
                queries.append(f"{row.sku} {row.product_name}")
            queries.append(row.sku)

        if row.ndc_item_code:
            queries.append(row.ndc_item_code)

        if row.product_name:
            if row.brand_name:
                queries.append(f'"{row.product_name}" {row.brand_name}')
            queries.append(f'"{row.product_name}"')

        return dedupe_queries(queries)

    def build_site_queries(self, domain: str, row: RowInput) -> List[str]:
        """
        Build site-restricted queries for a known manufacturer domain.

        Returns:
            Queries of the form "site:acme.com ..." in priority order
        """
        if not domain:
            return []

        queries = []
        if row.sku:
            queries.append(f"site:{domain} {row.sku}")
        if row.product_name:
            queries.append(f'site:{domain} "{row.product_name}"')
        if row.sku and row.product_name:
            queries.append(f"site:{domain} {row.sku} {row.product_name}")

        return dedupe_queries(queries)

    def build_official_site_queries(self, supplier_name: str) -> List[str]:
        """Build "official site" style queries for domain discovery."""
        if not supplier_name:
            return []
        return dedupe_queries(
            template.format(name=supplier_name)
            for template in self.OFFICIAL_SITE_TEMPLATES
        )
