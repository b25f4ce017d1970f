"""
Remediation Action Orchestrator

Tracks "fix this" runs for the drops of one viewer session. Every run is
keyed by the anomaly identity, never by list position, so re-parsing or
re-ordering a report does not orphan a run that is still in flight.

Lifecycle per identity:

    idle ──run()──▶ running ──▶ completed | failed   (run() may be called again)

Rejecting a second run for an identity that is already running is the
caller's job (the API answers 409). The orchestrator itself holds no lock:
two concurrent runs for the same identity race and the last to finish wins.
Runs for distinct identities proceed independently.
"""

import asyncio
import logging
from collections import deque
from types import MappingProxyType
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Union

import httpx

from ..core.config import settings
from ..models import ActionOutput, ActionRun, ActionStatus, Anomaly, Notification, RunState
from .diagnostics_client import DEFAULT_ACTION_ERROR, ActionRequestError, DiagnosticsClient
from .identity import identity_of

logger = logging.getLogger("seo_pulse.orchestrator")

SUCCESS_MESSAGE = "Analysis complete! See results below."

AnomalyRef = Union[Anomaly, str]


class ActionOrchestrator:
    """Owns the ``is_running`` and ``results`` maps for one session."""

    def __init__(
        self,
        client: DiagnosticsClient,
        site_id: str,
        notifier: Optional[Callable[[Notification], None]] = None,
        max_notifications: Optional[int] = None,
    ):
        self.client = client
        self.site_id = site_id
        self.notifier = notifier
        self._is_running: Dict[str, bool] = {}
        self._results: Dict[str, ActionRun] = {}
        self._states: Dict[str, RunState] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self.notifications: Deque[Notification] = deque(
            maxlen=max_notifications or settings.MAX_NOTIFICATIONS
        )

    # ── Read-only views ───────────────────────────────────────────

    @property
    def is_running(self) -> Mapping[str, bool]:
        return MappingProxyType(self._is_running)

    @property
    def results(self) -> Mapping[str, ActionRun]:
        return MappingProxyType(self._results)

    def status_of(self, anomaly: AnomalyRef) -> RunState:
        anomaly_id = self._key(anomaly)
        if self._is_running.get(anomaly_id):
            return RunState.RUNNING
        return self._states.get(anomaly_id, RunState.IDLE)

    def result_of(self, anomaly: AnomalyRef) -> Optional[ActionRun]:
        return self._results.get(self._key(anomaly))

    def running_ids(self) -> List[str]:
        return [k for k, v in self._is_running.items() if v]

    # ── Dispatch ──────────────────────────────────────────────────

    async def run(self, anomaly: Anomaly) -> None:
        """
        Run one remediation request for ``anomaly``.

        Failures are handled here: an error notification is emitted and the
        previous result for the identity, if any, is left untouched.
        ``is_running`` is cleared on every exit path.
        """
        anomaly_id = identity_of(anomaly)
        self._is_running[anomaly_id] = True
        self._states[anomaly_id] = RunState.RUNNING
        logger.info("Running action for %s (site %s)", anomaly_id, self.site_id)

        try:
            reply = await self.client.run_action(self.site_id, anomaly, enrich_only=True)
        except ActionRequestError as e:
            self._fail(anomaly_id, e.message or DEFAULT_ACTION_ERROR)
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("Action transport error for %s: %r", anomaly_id, e)
            self._fail(anomaly_id, str(e) or DEFAULT_ACTION_ERROR)
        except Exception as e:
            logger.exception("Unexpected error running action for %s", anomaly_id)
            self._fail(anomaly_id, str(e) or DEFAULT_ACTION_ERROR)
        else:
            if not isinstance(reply, dict):
                reply = {}
            run = ActionRun(
                run_id=str(reply.get("runId") or ""),
                status=ActionStatus.normalize(reply.get("status")),
                output=ActionOutput.from_payload(reply.get("output")),
            )
            self._results[anomaly_id] = run
            self._states[anomaly_id] = RunState.COMPLETED
            logger.info("Action %s for %s finished: %s", run.run_id, anomaly_id, run.status)
            self._notify("success", SUCCESS_MESSAGE, anomaly_id)
        finally:
            self._is_running[anomaly_id] = False

    def start(self, anomaly: Anomaly) -> asyncio.Task:
        """Schedule ``run`` on the running loop and keep a handle to it."""
        anomaly_id = identity_of(anomaly)
        task = asyncio.create_task(self.run(anomaly), name=f"action:{anomaly_id}")
        # Visible as running before the task gets its first turn on the loop
        self._is_running[anomaly_id] = True
        self._tasks[anomaly_id] = task
        task.add_done_callback(lambda t, key=anomaly_id: self._forget(key, t))
        return task

    async def wait_idle(self) -> None:
        """Wait for every task started through ``start`` to finish."""
        pending = list(self._tasks.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ── Internals ─────────────────────────────────────────────────

    def _fail(self, anomaly_id: str, message: str) -> None:
        self._states[anomaly_id] = RunState.FAILED
        logger.warning("Action for %s failed: %s", anomaly_id, message)
        self._notify("error", message, anomaly_id)

    def _notify(self, level: str, message: str, anomaly_id: str) -> None:
        note = Notification(level=level, message=message, anomaly_id=anomaly_id)
        self.notifications.append(note)
        if self.notifier is None:
            return
        try:
            self.notifier(note)
        except Exception:
            logger.exception("Notifier failed for %s", anomaly_id)

    def _forget(self, anomaly_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(anomaly_id) is task:
            del self._tasks[anomaly_id]

    @staticmethod
    def _key(anomaly: Any) -> str:
        return anomaly if isinstance(anomaly, str) else identity_of(anomaly)
