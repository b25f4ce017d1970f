from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import enum


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ActionStatus(str, enum.Enum):
    """Status values reported by the action-execution backend."""
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"

    @classmethod
    def normalize(cls, value: Any) -> str:
        """Canonical value for a known status ("DONE" -> "done"); other strings pass through."""
        text = "" if value is None else str(value)
        try:
            return cls(text.strip().lower()).value
        except ValueError:
            return text


class RunState(str, enum.Enum):
    """Local lifecycle of remediation runs for one anomaly identity."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ActionOutput:
    """Enrichment output returned by a remediation action."""
    findings: List[Dict[str, Any]] = field(default_factory=list)
    changes: List[Dict[str, Any]] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    summary: str = ""

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> Optional["ActionOutput"]:
        """Build from the backend's camelCase ``output`` object (None stays None)."""
        if not isinstance(payload, dict):
            return None
        return cls(
            findings=list(payload.get("findings") or []),
            changes=list(payload.get("changes") or []),
            next_steps=[str(s) for s in payload.get("nextSteps") or []],
            summary=str(payload.get("summary") or ""),
        )


@dataclass
class ActionRun:
    """One completed remediation run, stored under its anomaly identity."""
    run_id: str
    status: str
    output: Optional[ActionOutput] = None
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class Notification:
    """Transient user-facing message emitted when a run finishes."""
    level: str  # "success" | "error"
    message: str
    anomaly_id: str
    created_at: str = field(default_factory=utc_now_iso)
