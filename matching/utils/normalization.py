"""
Normalization helpers for match row inputs.

Rows arrive from distributor sheets with inconsistent casing, stray
punctuation and trademark symbols. These functions produce the stable keys
used for index lookups and for text comparison during page validation.

Normalization Rules:
- Supplier keys keep only lowercase letters and digits
- SKUs keep letters, digits, dashes and underscores
- NDC item codes drop all whitespace and are uppercased
- Product names drop trademark symbols and collapse whitespace
"""

import re
from typing import List, Optional
from urllib.parse import urlparse


def normalize_supplier_key(name: Optional[str]) -> str:
    """
    Build the supplier key used to scope index lookups.

    Example:
        >>> normalize_supplier_key("Acme Corp.")
        'acmecorp'
    """
    if not name:
        return ""
    return re.sub(r"[^a-z0-9]", "", name.lower())


def normalize_sku(sku: Optional[str]) -> str:
    """
    Normalize a SKU for index keys.

    Example:
        >>> normalize_sku(" AB-12/34 ")
        'ab-1234'
    """
    if not sku:
        return ""
    return re.sub(r"[^a-z0-9\-_]", "", sku.strip().lower())


def normalize_ndc_item_code(code: Optional[str]) -> str:
    """Strip whitespace and uppercase an NDC item code."""
    if not code:
        return ""
    return re.sub(r"\s+", "", code.strip()).upper()


def normalize_product_name(name: Optional[str]) -> str:
    """
    Normalize a product name for comparison.

    Example:
        >>> normalize_product_name("Acme®  Widget   PRO™")
        'acme widget pro'
    """
    if not name:
        return ""

    result = re.sub(r"[®™]", "", name)
    result = re.sub(r"\s+", " ", result)
    return result.strip().lower()


def hostname_from_url(url: Optional[str]) -> Optional[str]:
    """
    Return the lowercase hostname of a URL without a leading "www.".

    Returns None when the URL cannot be parsed or has no host.
    """
    if not url:
        return None
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase, replace punctuation with spaces and split on whitespace."""
    if not text:
        return []
    cleaned = re.sub(r"[^\w\s]", " ", text.lower())
    return cleaned.split()
