"""
Shared utility functions for the diagnostics backend.

Consolidates helpers used by the parser, the orchestrator and the API layer:
  - parse_leading_int / parse_leading_float: lenient numeric parsing
  - anomaly_from_payload / anomaly_to_payload: upstream camelCase <-> Anomaly
  - anomaly_to_dict: Anomaly dataclass -> enriched API dict
  - report_to_dict: DiagnosticReport -> API dict
  - action_run_to_dict: ActionRun -> API dict
"""

import re
from typing import Any, Dict, Mapping, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


# ─── Numeric parsing ────────────────────────────────────────────────

def parse_leading_int(text: Any, default: int = 0) -> int:
    """Parse the integer prefix of ``text`` ("1,234" -> 1, "n/a" -> default)."""
    if isinstance(text, bool):
        return default
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        return int(text)
    match = _LEADING_INT.match(str(text or ""))
    return int(match.group(1)) if match else default


def parse_leading_float(text: Any, default: float = 0.0) -> float:
    """Parse the float prefix of ``text`` ("-3.4 (sig)" -> -3.4, "" -> default)."""
    if isinstance(text, bool):
        return default
    if isinstance(text, (int, float)):
        return float(text)
    match = _LEADING_FLOAT.match(str(text or ""))
    return float(match.group(1)) if match else default


# ─── Anomaly payload conversion ─────────────────────────────────────

def anomaly_from_payload(payload: Mapping[str, Any]):
    """
    Build an Anomaly from a request payload.

    Accepts both the upstream camelCase drop shape (``dropPercent``, ``value``,
    ``avg7d``, ``zScore``) and this service's snake_case shape. Raises
    ValueError when one of the identity fields is missing.
    """
    from .models import Anomaly

    def pick(*keys: str, default: Any = None) -> Any:
        for key in keys:
            if key in payload and payload[key] is not None:
                return payload[key]
        return default

    date = str(pick("date", default="")).strip()
    source = str(pick("source", default="")).strip()
    metric = str(pick("metric", default="")).strip()
    if not (date and source and metric):
        raise ValueError("anomaly requires non-empty date, source and metric")

    return Anomaly(
        date=date,
        source=source,
        metric=metric,
        drop_percent=str(pick("drop_percent", "dropPercent", default="")),
        current_value=parse_leading_int(pick("current_value", "value", default=0)),
        avg_7d=parse_leading_int(pick("avg_7d", "avg7d", default=0)),
        z_score=parse_leading_float(pick("z_score", "zScore", default=0.0)),
    )


def anomaly_to_payload(anomaly) -> Dict[str, Any]:
    """Convert an Anomaly to the upstream ``drop`` shape."""
    return {
        "date": anomaly.date,
        "source": anomaly.source,
        "metric": anomaly.metric,
        "dropPercent": anomaly.drop_percent,
        "value": anomaly.current_value,
        "avg7d": anomaly.avg_7d,
        "zScore": anomaly.z_score,
    }


# ─── API serialization ──────────────────────────────────────────────

def anomaly_to_dict(anomaly) -> Dict[str, Any]:
    """Convert an Anomaly to API dict format with its derived fields."""
    from .services.classifier import classify
    from .services.identity import identity_of
    from .services.interpretation import interpret, suggest_actions

    actions = suggest_actions(anomaly)
    return {
        "id": identity_of(anomaly),
        "date": anomaly.date,
        "source": anomaly.source,
        "metric": anomaly.metric,
        "drop_percent": anomaly.drop_percent,
        "current_value": anomaly.current_value,
        "avg_7d": anomaly.avg_7d,
        "z_score": anomaly.z_score,
        "severity": classify(anomaly.z_score).value,
        "interpretation": interpret(anomaly).text,
        "suggested_actions": {
            "primary": actions.primary,
            "secondary": list(actions.secondary),
        },
    }


def action_run_to_dict(run) -> Optional[Dict[str, Any]]:
    """Convert an ActionRun to API dict format (None passes through)."""
    if run is None:
        return None
    output = None
    if run.output is not None:
        output = {
            "findings": run.output.findings,
            "changes": run.output.changes,
            "next_steps": run.output.next_steps,
            "summary": run.output.summary,
        }
    return {
        "run_id": run.run_id,
        "status": run.status,
        "output": output,
        "created_at": run.created_at,
    }


def report_to_dict(report, sort_by_severity: bool = False) -> Dict[str, Any]:
    """Convert a DiagnosticReport to API dict format."""
    from .services.classifier import classify, severity_rank

    anomalies = list(report.anomalies)
    if sort_by_severity:
        anomalies.sort(key=lambda a: severity_rank(classify(a.z_score)), reverse=True)

    return {
        "period": report.period,
        "domain": report.domain,
        "total_drops_declared": report.total_drops_declared,
        "health_checks": [
            {"name": hc.name, "status": hc.status.value} for hc in report.health_checks
        ],
        "anomalies": [anomaly_to_dict(a) for a in anomalies],
        "root_causes": [
            {"title": rc.title, "confidence": rc.confidence.value} for rc in report.root_causes
        ],
    }
