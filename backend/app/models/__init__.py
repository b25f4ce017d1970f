from .anomaly import Anomaly, SeverityTier
from .report import Confidence, DiagnosticReport, HealthCheck, HealthStatus, RootCause
from .action import ActionOutput, ActionRun, ActionStatus, Notification, RunState

__all__ = [
    "Anomaly",
    "SeverityTier",
    "Confidence",
    "DiagnosticReport",
    "HealthCheck",
    "HealthStatus",
    "RootCause",
    "ActionOutput",
    "ActionRun",
    "ActionStatus",
    "Notification",
    "RunState",
]
