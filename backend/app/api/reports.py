"""
Diagnostic Report API

Parses raw diagnostic reports into typed, enriched JSON. Reports are either
posted directly or fetched from the upstream dashboard backend.
"""

import logging

import httpx
from fastapi import APIRouter, HTTPException, Query

from ..services.diagnostics_client import ActionRequestError
from ..services.report_parser import parse_report
from ..services.session_store import session_store
from ..utils import report_to_dict
from .schemas import RawReportRequest, ReportResponse

logger = logging.getLogger("seo_pulse.api")

router = APIRouter(prefix="/reports", tags=["reports"])


async def fetch_latest_raw_report() -> str:
    """Fetch the latest raw report text upstream; raises HTTPException on failure."""
    try:
        latest = await session_store.client.fetch_latest_report()
    except (ActionRequestError, httpx.HTTPError) as e:
        logger.error("Failed to fetch latest report: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to fetch latest report: {e}")

    if not latest:
        raise HTTPException(status_code=404, detail="No reports found")
    return latest.get("markdownReport") or ""


@router.post("/parse", response_model=ReportResponse)
async def parse_raw_report(
    body: RawReportRequest,
    sort: str = Query("report", description="'report' keeps row order, 'severity' puts the most severe first"),
):
    """Parse a raw report payload."""
    report = parse_report(body.raw_text)
    return report_to_dict(report, sort_by_severity=(sort == "severity"))


@router.get("/latest", response_model=ReportResponse)
async def get_latest_report(
    sort: str = Query("report", description="'report' keeps row order, 'severity' puts the most severe first"),
):
    """Fetch and parse the latest report from the dashboard backend."""
    raw_text = await fetch_latest_raw_report()
    report = parse_report(raw_text)
    return report_to_dict(report, sort_by_severity=(sort == "severity"))


@router.post("/regenerate")
async def regenerate_report(force: bool = False):
    """Trigger a new diagnostic run upstream."""
    try:
        result = await session_store.client.regenerate_report(force=force)
    except (ActionRequestError, httpx.HTTPError) as e:
        logger.error("Report regeneration failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e) or "Failed to run analysis")
    return {"status": "accepted", "upstream": result}
