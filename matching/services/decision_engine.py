"""
Decision Engine.

Picks at most one accepted candidate per row. The acceptance threshold is
relaxed when a manufacturer domain was resolved independently of the
candidate, since the domain itself is prior evidence.

Soft failures (no domain, no candidates, nothing above threshold) are
terminal "unresolved" decisions carrying whatever evidence exists. They are
never raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from matching.models import CandidateSource, MatchRowStatus
from matching.services.types import ValidationResult

logger = logging.getLogger(__name__)

REASON_ACCEPTED = "accepted"
REASON_NO_DOMAIN = "no_manufacturer_domain"
REASON_NO_CANDIDATES = "no_candidates"
REASON_NO_MANUFACTURER_CANDIDATES = "no_manufacturer_candidates"
REASON_LOW_CONFIDENCE = "low_confidence"


@dataclass
class Decision:
    """Outcome for one row, ready to be written back."""

    status: str
    reason: str
    domain: Optional[str] = None
    accepted: Optional[ValidationResult] = None
    candidates: List[ValidationResult] = field(default_factory=list)
    confidence: float = 0.0
    matched_by: str = ""
    threshold: Optional[float] = None

    @property
    def is_resolved(self) -> bool:
        return self.status == MatchRowStatus.RESOLVED_CONFIDENT

    @property
    def from_index(self) -> bool:
        return self.matched_by.startswith("index:")

    @property
    def resolved_url(self) -> Optional[str]:
        return self.accepted.url if self.accepted else None

    @property
    def resolved_domain(self) -> Optional[str]:
        return self.accepted.domain if self.accepted else None

    def candidate_records(self) -> List[Dict[str, Any]]:
        return [candidate.to_record() for candidate in self.candidates]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": str(self.status),
            "reason": self.reason,
            "domain": self.domain,
            "resolved_url": self.resolved_url,
            "resolved_domain": self.resolved_domain,
            "confidence": round(self.confidence, 4),
            "matched_by": self.matched_by,
            "threshold": self.threshold,
            "candidates": self.candidate_records(),
        }


class DecisionEngine:
    """
    Applies the acceptance threshold to validated candidates.

    Usage:
        engine = DecisionEngine(threshold=0.65, domain_relaxation=0.1)
        decision = engine.decide(validated, domain="acme.com", policy_tag="manufacturer_only")
    """

    def __init__(self, threshold: float = 0.65, domain_relaxation: float = 0.1):
        self.threshold = threshold
        self.domain_relaxation = domain_relaxation

    def threshold_for(self, domain_resolved: bool) -> float:
        """Acceptance threshold, relaxed when a manufacturer domain is known."""
        if domain_resolved:
            return round(self.threshold - self.domain_relaxation, 4)
        return round(self.threshold, 4)

    def unresolved(
        self,
        reason: str,
        domain: Optional[str] = None,
        candidates: Optional[List[ValidationResult]] = None,
    ) -> Decision:
        """Terminal soft failure."""
        candidates = candidates or []
        return Decision(
            status=MatchRowStatus.UNRESOLVED,
            reason=reason,
            domain=domain,
            candidates=candidates,
            confidence=max((c.score for c in candidates), default=0.0),
        )

    def decide(
        self,
        validated: List[ValidationResult],
        domain: Optional[str],
        policy_tag: str,
    ) -> Decision:
        """
        Choose the best candidate or mark the row unresolved.

        Args:
            validated: Validation results (any order)
            domain: Resolved manufacturer domain, or None
            policy_tag: Domain-trust path that produced the pool

        Returns:
            Decision; resolved_confident carries exactly one candidate
        """
        threshold = self.threshold_for(bool(domain))
        ranked = sorted(validated, key=lambda result: result.score, reverse=True)

        if not ranked:
            decision = self.unresolved(REASON_NO_CANDIDATES, domain=domain)
            decision.threshold = threshold
            return decision

        best = ranked[0]
        if best.score < threshold:
            logger.info(
                f"Best candidate {best.url} scored {best.score:.2f} "
                f"below threshold {threshold:.2f}"
            )
            decision = self.unresolved(REASON_LOW_CONFIDENCE, domain=domain, candidates=ranked)
            decision.threshold = threshold
            return decision

        return Decision(
            status=MatchRowStatus.RESOLVED_CONFIDENT,
            reason=REASON_ACCEPTED,
            domain=domain,
            accepted=best,
            candidates=[best],
            confidence=best.score,
            matched_by=f"{best.source}:{policy_tag}",
            threshold=threshold,
        )

    def accept_indexed(
        self,
        url: str,
        domain: Optional[str],
        confidence: float,
        matched_by: str,
    ) -> Decision:
        """
        Accept a page already confirmed in the source index.

        No search or validation took place, so no threshold applies.
        """
        result = ValidationResult(
            url=url,
            score=confidence,
            source=CandidateSource.INDEX.value,
            domain=domain,
            matched_tokens=[matched_by],
        )
        return Decision(
            status=MatchRowStatus.RESOLVED_CONFIDENT,
            reason=REASON_ACCEPTED,
            domain=domain,
            accepted=result,
            candidates=[result],
            confidence=confidence,
            matched_by=matched_by,
        )
