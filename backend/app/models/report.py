from dataclasses import dataclass
from typing import Tuple
import enum

from .anomaly import Anomaly


class HealthStatus(str, enum.Enum):
    """Health-check row status."""
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"


class Confidence(str, enum.Enum):
    """Confidence attached to a root-cause hypothesis."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class HealthCheck:
    """One row of the report's health-check table."""
    name: str
    status: HealthStatus


@dataclass(frozen=True)
class RootCause:
    """A candidate explanation taken from a confidence-marked heading."""
    title: str
    confidence: Confidence


@dataclass(frozen=True)
class DiagnosticReport:
    """
    Typed view of one raw diagnostic report.

    Immutable once parsed; loading a newer report yields a new instance.
    ``total_drops_declared`` comes from the report's own summary line and is
    kept for display only, independently of ``len(anomalies)``.
    """

    health_checks: Tuple[HealthCheck, ...] = ()
    anomalies: Tuple[Anomaly, ...] = ()
    root_causes: Tuple[RootCause, ...] = ()
    period: str = ""
    domain: str = ""
    total_drops_declared: int = 0
