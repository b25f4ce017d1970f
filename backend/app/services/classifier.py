"""
Anomaly Severity Classifier

Maps the z-score supplied by the upstream analysis job to a severity tier.
Only the magnitude matters; the sign is ignored.
"""

from ..models import SeverityTier

SEVERE_Z = 3.0
MODERATE_Z = 2.0

_SEVERITY_RANK = {
    SeverityTier.SEVERE: 3,
    SeverityTier.MODERATE: 2,
    SeverityTier.MILD: 1,
}


def classify(z_score: float) -> SeverityTier:
    """Return the severity tier for a signed z-score."""
    magnitude = abs(z_score)
    if magnitude >= SEVERE_Z:
        return SeverityTier.SEVERE
    if magnitude >= MODERATE_Z:
        return SeverityTier.MODERATE
    return SeverityTier.MILD


def severity_rank(tier: SeverityTier) -> int:
    """Sort key for most-severe-first ordering."""
    return _SEVERITY_RANK.get(tier, 0)
