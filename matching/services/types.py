"""
Value types shared by the resolution pipeline.

RowInput is the validated view of a MatchRow: every field is a stripped
string ("" when missing) and the normalized keys are always populated, so
no later stage needs to re-check the raw row.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from matching.utils.normalization import (
    normalize_ndc_item_code,
    normalize_sku,
    normalize_supplier_key,
)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class RowInput:
    """Input attributes of a row, normalized once at the boundary."""

    id: str
    tenant_id: str
    sku: str = ""
    sku_norm: str = ""
    ndc_item_code: str = ""
    product_name: str = ""
    brand_name: str = ""
    supplier_name: str = ""
    supplier_key: str = ""

    @classmethod
    def from_row(cls, row) -> "RowInput":
        """Build from a MatchRow (or any object exposing the same attributes)."""
        sku = _clean(getattr(row, "sku", ""))
        supplier_name = _clean(getattr(row, "supplier_name", ""))
        return cls(
            id=str(row.id),
            tenant_id=str(row.tenant_id),
            sku=sku,
            sku_norm=_clean(getattr(row, "sku_norm", "")) or normalize_sku(sku),
            ndc_item_code=_clean(getattr(row, "ndc_item_code", "")),
            product_name=_clean(getattr(row, "product_name", "")),
            brand_name=_clean(getattr(row, "brand_name", "")),
            supplier_name=supplier_name,
            supplier_key=(
                normalize_supplier_key(_clean(getattr(row, "supplier_key", "")))
                or normalize_supplier_key(supplier_name)
            ),
        )

    @property
    def ndc_item_code_norm(self) -> str:
        return normalize_ndc_item_code(self.ndc_item_code)


@dataclass
class SearchResult:
    """One organic result returned by a search provider."""

    url: str
    title: str = ""
    snippet: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "title": self.title, "snippet": self.snippet}


@dataclass
class Candidate:
    """A URL that might be the canonical product page."""

    url: str
    source: str
    title: Optional[str] = None
    snippet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "snippet": self.snippet,
            "source": self.source,
        }


@dataclass
class ValidationResult:
    """
    Outcome of fetching and scoring one candidate.

    A failed fetch keeps the candidate with score 0 and the error recorded,
    so reviewers still see it in the persisted candidate list.
    """

    url: str
    score: float
    source: str
    domain: Optional[str] = None
    matched_tokens: List[str] = field(default_factory=list)
    title: Optional[str] = None
    snippet: str = ""
    status_code: Optional[int] = None
    error: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """Serialize for MatchRow.candidates."""
        record = {
            "url": self.url,
            "score": round(self.score, 4),
            "matched_tokens": list(self.matched_tokens),
            "domain": self.domain,
            "source": self.source,
            "title": self.title,
            "snippet": self.snippet,
        }
        if self.error:
            record["error"] = self.error
        return record
