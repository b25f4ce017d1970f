"""
Upstream Dashboard API Client

Async httpx client for the three calls the diagnostics pipeline makes to the
dashboard backend: fetch the latest raw report, trigger report regeneration,
and run a remediation action for a detected drop.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.config import settings
from ..utils import anomaly_to_payload

logger = logging.getLogger("seo_pulse.client")

LATEST_REPORT_PATH = "/api/report/latest"
REGENERATE_PATH = "/api/run"
RUN_ACTION_PATH = "/api/actions/run"

DEFAULT_ACTION_ERROR = "Failed to run action"
DEFAULT_REGENERATE_ERROR = "Failed to run analysis"
DEFAULT_FETCH_ERROR = "Failed to fetch latest report"


class ActionRequestError(Exception):
    """Non-success reply from the dashboard backend."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response, default: str) -> str:
    """Server-provided ``error`` field if the body carries one, else ``default``."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default


class DiagnosticsClient:
    """
    Thin wrapper around ``httpx.AsyncClient``.

    No retries and no cancellation: a request runs to completion or fails with
    ActionRequestError (non-2xx) or httpx.HTTPError (transport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.UPSTREAM_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "DiagnosticsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_latest_report(self) -> Optional[Dict[str, Any]]:
        """Return the latest stored report (with ``markdownReport``), or None if there is none."""
        resp = await self._client.get(LATEST_REPORT_PATH)
        if resp.status_code == 404:
            return None
        if resp.is_error:
            raise ActionRequestError(_error_message(resp, DEFAULT_FETCH_ERROR), resp.status_code)
        return resp.json()

    async def regenerate_report(self, force: bool = False) -> Dict[str, Any]:
        """Ask the backend to re-run the diagnostic analysis."""
        params = {"force": "true"} if force else None
        resp = await self._client.post(REGENERATE_PATH, params=params)
        if resp.is_error:
            logger.warning("Report regeneration failed with HTTP %d", resp.status_code)
            raise ActionRequestError(DEFAULT_REGENERATE_ERROR, resp.status_code)
        try:
            return resp.json()
        except ValueError:
            return {}

    async def run_action(
        self,
        site_id: str,
        anomaly,
        enrich_only: bool = True,
        action_code: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run a remediation action for one drop.

        Returns the backend reply ``{"runId", "status", "output"}``.
        """
        body: Dict[str, Any] = {
            "siteId": site_id,
            "drop": anomaly_to_payload(anomaly),
            "enrichOnly": enrich_only,
        }
        if action_code:
            body["actionCode"] = action_code

        resp = await self._client.post(RUN_ACTION_PATH, json=body)
        if resp.is_error:
            raise ActionRequestError(_error_message(resp, DEFAULT_ACTION_ERROR), resp.status_code)
        return resp.json()
