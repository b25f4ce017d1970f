"""
API Request/Response Schemas

Pydantic models used across API endpoints for request validation
and response serialization.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any


# ─── Report Schemas ──────────────────────────────────────────────────

class RawReportRequest(BaseModel):
    raw_text: str = Field(default="", description="Raw markdown report as produced by the analysis job")


class SessionReportRequest(BaseModel):
    raw_text: Optional[str] = Field(
        default=None,
        description="Raw report text; when omitted the latest upstream report is fetched",
    )


class SuggestedActionsResponse(BaseModel):
    primary: str
    secondary: List[str]


class AnomalyResponse(BaseModel):
    id: str
    date: str
    source: str
    metric: str
    drop_percent: str
    current_value: int
    avg_7d: int
    z_score: float
    severity: str
    interpretation: str
    suggested_actions: SuggestedActionsResponse
    # Only present in session views
    run_state: Optional[str] = None
    is_running: Optional[bool] = None
    action_run: Optional[Dict[str, Any]] = None


class HealthCheckResponse(BaseModel):
    name: str
    status: str


class RootCauseResponse(BaseModel):
    title: str
    confidence: str


class ReportResponse(BaseModel):
    period: str
    domain: str
    total_drops_declared: int
    health_checks: List[HealthCheckResponse]
    anomalies: List[AnomalyResponse]
    root_causes: List[RootCauseResponse]


# ─── Session Schemas ─────────────────────────────────────────────────

class SessionCreate(BaseModel):
    site_id: Optional[str] = None


class SessionResponse(BaseModel):
    session_id: str
    site_id: str
    created_at: str
    report: Optional[ReportResponse] = None


# ─── Action Schemas ──────────────────────────────────────────────────

class ActionRunRequest(BaseModel):
    anomaly: Dict[str, Any] = Field(
        ..., description="Drop to remediate: date, source, metric, dropPercent, value, avg7d, zScore"
    )


class ActionAccepted(BaseModel):
    anomaly_id: str
    run_state: str


class ActionStateResponse(BaseModel):
    anomaly_id: str
    run_state: str
    is_running: bool
    action_run: Optional[Dict[str, Any]] = None


class ActionMapsResponse(BaseModel):
    is_running: Dict[str, bool]
    results: Dict[str, Dict[str, Any]]


class NotificationResponse(BaseModel):
    level: str
    message: str
    anomaly_id: str
    created_at: str
