"""
Domain-trust policy.

Unrestricted web search reliably surfaces marketplaces and resellers whose
pages score well on text overlap. By default only pages on the resolved
manufacturer domain (or its subdomains) are considered. The operator flag
MATCH_ALLOW_RESELLERS switches to the reseller-tolerant mode.
"""

from typing import List, Optional

from matching.services.types import Candidate
from matching.utils.normalization import hostname_from_url

MANUFACTURER_ONLY = "manufacturer_only"
RESELLER_TOLERANT = "reseller_tolerant"


class DomainTrustPolicy:
    """Decides which candidate hosts may be validated for a row."""

    def __init__(self, allow_resellers: bool = False):
        self.allow_resellers = allow_resellers

    @staticmethod
    def host_matches(host: Optional[str], domain: Optional[str]) -> bool:
        """True if host equals domain or is a subdomain of it."""
        if not host or not domain:
            return False
        host = host.lower()
        domain = domain.lower()
        return host == domain or host.endswith("." + domain)

    def permits_row(self, domain: Optional[str]) -> bool:
        """A row without a manufacturer domain is only processed in tolerant mode."""
        return bool(domain) or self.allow_resellers

    def filter(self, candidates: List[Candidate], domain: Optional[str]) -> List[Candidate]:
        """
        Apply the policy to a candidate pool.

        Args:
            candidates: Deduplicated candidates in priority order
            domain: Resolved manufacturer domain, or None

        Returns:
            Candidates allowed through to validation, order preserved
        """
        if self.allow_resellers:
            return list(candidates)
        if not domain:
            return []
        return [
            candidate
            for candidate in candidates
            if self.host_matches(hostname_from_url(candidate.url), domain)
        ]

    def policy_tag(self) -> str:
        """Provenance tag for the path that produced an accepted candidate."""
        if self.allow_resellers:
            return RESELLER_TOLERANT
        return MANUFACTURER_ONLY
