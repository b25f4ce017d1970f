"""
Viewer Session Store

In-memory registry of dashboard viewer sessions. Each session owns exactly
one ActionOrchestrator (and therefore its own ``is_running``/``results``
maps) plus the last report it loaded. Nothing is persisted: action state
lives only as long as the session.
"""

import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..core.config import settings
from ..models import DiagnosticReport
from ..models.action import utc_now_iso
from .action_orchestrator import ActionOrchestrator
from .diagnostics_client import DiagnosticsClient

logger = logging.getLogger("seo_pulse.sessions")


@dataclass
class ViewerSession:
    session_id: str
    site_id: str
    orchestrator: ActionOrchestrator
    report: Optional[DiagnosticReport] = None
    created_at: str = field(default_factory=utc_now_iso)

    def load_report(self, report: DiagnosticReport) -> None:
        """Swap in a newly parsed report; action state is keyed by identity and survives."""
        self.report = report


class SessionStore:
    """
    Thread-safe session registry.

    The oldest session is evicted once ``max_sessions`` is exceeded.
    """

    def __init__(
        self,
        client_factory: Optional[Callable[[], DiagnosticsClient]] = None,
        max_sessions: Optional[int] = None,
    ):
        self._client_factory = client_factory or DiagnosticsClient
        self._client: Optional[DiagnosticsClient] = None
        self._max_sessions = max_sessions or settings.MAX_SESSIONS
        self._sessions: "OrderedDict[str, ViewerSession]" = OrderedDict()
        # Removed sessions whose runs were still in flight; drained by close()
        self._retired: List[ViewerSession] = []
        self._lock = threading.RLock()

    @property
    def client(self) -> DiagnosticsClient:
        """Upstream client shared by every session's orchestrator."""
        with self._lock:
            if self._client is None:
                self._client = self._client_factory()
            return self._client

    def create_session(self, site_id: Optional[str] = None) -> ViewerSession:
        site_id = site_id or settings.DEFAULT_SITE_ID
        if not site_id:
            raise ValueError("site_id is required")

        session = ViewerSession(
            session_id=str(uuid.uuid4()),
            site_id=site_id,
            orchestrator=ActionOrchestrator(self.client, site_id),
        )
        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self._max_sessions:
                _, evicted = self._sessions.popitem(last=False)
                self._retire(evicted, "Evicted")
        logger.info("Created session %s for site %s", session.session_id, site_id)
        return session

    def get_session(self, session_id: str) -> Optional[ViewerSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            self._retire(session, "Deleted")
            return True

    def list_sessions(self) -> List[ViewerSession]:
        with self._lock:
            return list(self._sessions.values())

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _retire(self, session: ViewerSession, verb: str) -> None:
        in_flight = session.orchestrator.running_ids()
        if in_flight:
            self._retired.append(session)
            logger.warning(
                "%s session %s with %d run(s) in flight", verb, session.session_id, len(in_flight)
            )
        else:
            logger.info("%s session %s", verb, session.session_id)

    async def close(self) -> None:
        """Wait for in-flight runs, then release the upstream client."""
        with self._lock:
            pending = list(self._sessions.values()) + self._retired
            self._retired = []
        for session in pending:
            await session.orchestrator.wait_idle()
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            await client.aclose()


# Global session store instance
session_store = SessionStore()
