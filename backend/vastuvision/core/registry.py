"""
Session Registry

In-memory map of live capture sessions. Nothing is persisted; a process
restart drops every session. Sessions idle for longer than
``session_idle_timeout_s`` are swept whenever a new one is created.
"""

import functools
import logging
import time
import uuid
from typing import Callable, Dict, Optional

from vastuvision.config import Settings, get_settings
from vastuvision.core.errors import SessionNotFound
from vastuvision.core.interaction import DeviceCapabilities
from vastuvision.core.session import CaptureSession
from vastuvision.core.workflow import CaptureStage
from vastuvision.models.report import ReportLanguage


logger = logging.getLogger(__name__)


class SessionRegistry:
    """Creates, looks up, expires and drops capture sessions."""

    def __init__(self, settings: Optional[Settings] = None, clock: Callable[[], float] = time.monotonic):
        self.settings = settings or get_settings()
        self._clock = clock
        self._sessions: Dict[str, CaptureSession] = {}
        self._last_seen: Dict[str, float] = {}

    def create(
        self,
        language: ReportLanguage = ReportLanguage.ENGLISH,
        capabilities: Optional[DeviceCapabilities] = None,
    ) -> CaptureSession:
        self.cleanup_expired()
        session_id = uuid.uuid4().hex
        session = CaptureSession(
            session_id, language=language, capabilities=capabilities, settings=self.settings
        )
        self._sessions[session_id] = session
        self._last_seen[session_id] = self._clock()
        return session

    def get(self, session_id: str) -> CaptureSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(
                f"Unknown session '{session_id}'", context={"session_id": session_id}
            )
        self._last_seen[session_id] = self._clock()
        return session

    def drop(self, session_id: str) -> None:
        self.get(session_id).controller.detach()
        del self._sessions[session_id]
        del self._last_seen[session_id]

    def cleanup_expired(self) -> int:
        """
        Drop sessions idle for longer than the configured timeout.
        Sessions with an analysis in flight are kept.

        Returns:
            Number of sessions dropped
        """
        cutoff = self._clock() - self.settings.session_idle_timeout_s
        expired = [
            session_id
            for session_id, seen in self._last_seen.items()
            if seen < cutoff and self._sessions[session_id].stage != CaptureStage.ANALYZING
        ]
        for session_id in expired:
            self.drop(session_id)
        if expired:
            logger.info("Expired %d idle session(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


@functools.lru_cache()
def get_registry() -> SessionRegistry:
    """Process-wide registry."""
    return SessionRegistry()
