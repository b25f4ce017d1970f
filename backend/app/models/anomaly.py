from dataclasses import dataclass
import enum

from ..utils import parse_leading_float


class SeverityTier(str, enum.Enum):
    """Severity tiers derived from the magnitude of an anomaly's z-score."""
    SEVERE = "severe"
    MODERATE = "moderate"
    MILD = "mild"


@dataclass(frozen=True)
class Anomaly:
    """A detected metric drop, as listed in the report's drops table.

    Severity is never stored here: ``z_score`` is the single source of truth
    and the tier is recomputed by the classifier wherever it is needed.
    """

    date: str
    source: str
    metric: str
    drop_percent: str = ""
    current_value: int = 0
    avg_7d: int = 0
    z_score: float = 0.0

    @property
    def drop_magnitude(self) -> float:
        """Absolute value of ``drop_percent`` ("-62%" -> 62.0), 0.0 if unparseable."""
        return abs(parse_leading_float(self.drop_percent.replace("%", "")))
