"""
Viewer Session & Action API

A session is one dashboard viewer: it holds the report being looked at and
the per-anomaly "fix this" runs. Action runs execute in the background; the
client polls the session (or a single anomaly) to merge results into view.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query

from ..services.identity import identity_of
from ..services.session_store import ViewerSession, session_store
from ..services.report_parser import parse_report
from ..models import RunState
from ..utils import action_run_to_dict, anomaly_from_payload, report_to_dict
from .reports import fetch_latest_raw_report
from .schemas import (
    ActionAccepted,
    ActionMapsResponse,
    ActionRunRequest,
    ActionStateResponse,
    SessionCreate,
    SessionReportRequest,
    SessionResponse,
)

logger = logging.getLogger("seo_pulse.api")

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_session_or_404(session_id: str) -> ViewerSession:
    session = session_store.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _session_view(session: ViewerSession, sort_by_severity: bool = False) -> Dict[str, Any]:
    """Session dict with each anomaly merged with its action state."""
    view: Dict[str, Any] = {
        "session_id": session.session_id,
        "site_id": session.site_id,
        "created_at": session.created_at,
        "report": None,
    }
    if session.report is None:
        return view

    orchestrator = session.orchestrator
    report = report_to_dict(session.report, sort_by_severity=sort_by_severity)
    for anomaly in report["anomalies"]:
        anomaly_id = anomaly["id"]
        anomaly["run_state"] = orchestrator.status_of(anomaly_id).value
        anomaly["is_running"] = bool(orchestrator.is_running.get(anomaly_id))
        anomaly["action_run"] = action_run_to_dict(orchestrator.result_of(anomaly_id))
    view["report"] = report
    return view


# ---------- Sessions ----------

@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(body: SessionCreate):
    """Open a viewer session for a site."""
    try:
        session = session_store.create_session(body.site_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_view(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    sort: str = Query("report", description="'report' keeps row order, 'severity' puts the most severe first"),
):
    """Current report with action state merged into every anomaly."""
    session = _get_session_or_404(session_id)
    return _session_view(session, sort_by_severity=(sort == "severity"))


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    if not session_store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"status": "deleted", "session_id": session_id}


@router.post("/{session_id}/report", response_model=SessionResponse)
async def load_session_report(session_id: str, body: SessionReportRequest):
    """Parse a report (posted, or the latest upstream) into the session."""
    session = _get_session_or_404(session_id)
    raw_text = body.raw_text
    if raw_text is None:
        raw_text = await fetch_latest_raw_report()
    session.load_report(parse_report(raw_text))
    return _session_view(session)


# ---------- Actions ----------

@router.post("/{session_id}/actions", response_model=ActionAccepted, status_code=202)
async def run_action(session_id: str, body: ActionRunRequest):
    """Start a remediation run for one anomaly in the background."""
    session = _get_session_or_404(session_id)
    try:
        anomaly = anomaly_from_payload(body.anomaly)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    anomaly_id = identity_of(anomaly)
    orchestrator = session.orchestrator
    # One run per identity at a time; the orchestrator does not enforce this itself.
    if orchestrator.is_running.get(anomaly_id):
        raise HTTPException(status_code=409, detail=f"Action already running for {anomaly_id}")

    orchestrator.start(anomaly)
    return {"anomaly_id": anomaly_id, "run_state": RunState.RUNNING.value}


@router.get("/{session_id}/actions", response_model=ActionMapsResponse)
async def get_action_maps(session_id: str):
    session = _get_session_or_404(session_id)
    orchestrator = session.orchestrator
    return {
        "is_running": dict(orchestrator.is_running),
        "results": {k: action_run_to_dict(v) for k, v in orchestrator.results.items()},
    }


@router.get("/{session_id}/actions/{anomaly_id}", response_model=ActionStateResponse)
async def get_action_state(session_id: str, anomaly_id: str):
    session = _get_session_or_404(session_id)
    orchestrator = session.orchestrator
    return {
        "anomaly_id": anomaly_id,
        "run_state": orchestrator.status_of(anomaly_id).value,
        "is_running": bool(orchestrator.is_running.get(anomaly_id)),
        "action_run": action_run_to_dict(orchestrator.result_of(anomaly_id)),
    }


@router.get("/{session_id}/notifications")
async def get_notifications(session_id: str):
    """Recent success/error notifications, oldest first."""
    session = _get_session_or_404(session_id)
    return [
        {
            "level": n.level,
            "message": n.message,
            "anomaly_id": n.anomaly_id,
            "created_at": n.created_at,
        }
        for n in session.orchestrator.notifications
    ]
