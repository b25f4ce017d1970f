from .classifier import classify, severity_rank
from .interpretation import Interpretation, SuggestedActions, interpret, suggest_actions
from .identity import identity_of
from .report_parser import ReportParser, parse_report
from .diagnostics_client import ActionRequestError, DiagnosticsClient
from .action_orchestrator import ActionOrchestrator
from .session_store import SessionStore, ViewerSession, session_store

__all__ = [
    "classify",
    "severity_rank",
    "Interpretation",
    "SuggestedActions",
    "interpret",
    "suggest_actions",
    "identity_of",
    "ReportParser",
    "parse_report",
    "ActionRequestError",
    "DiagnosticsClient",
    "ActionOrchestrator",
    "SessionStore",
    "ViewerSession",
    "session_store",
]
