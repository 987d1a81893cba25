import hmac
import logging
import secrets
import time
from collections.abc import Callable
from functools import lru_cache

from models import SessionFormState
from settings import get_settings

logger = logging.getLogger(__name__)


class AssessmentSession:
    """Per-browser state for one assessment. Lives in memory only."""

    def __init__(self, session_id: str, now: float = 0.0):
        self.session_id = session_id
        self.csrf_token = secrets.token_hex(32)
        self.form: SessionFormState | None = None
        self.consented = False
        self.last_seen = now

    def check_csrf(self, token: str | None) -> bool:
        if not token or not self.csrf_token:
            return False
        return hmac.compare_digest(self.csrf_token.encode(), token.encode())


class SessionStore:
    """
    Sessions expire after `ttl_seconds` without a request. When `max_sessions`
    is reached, the least recently used session is evicted on `create`.
    """

    def __init__(
        self,
        ttl_seconds: int = 3600,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        self._sessions: dict[str, AssessmentSession] = {}

    def _expired(self, session: AssessmentSession, now: float) -> bool:
        return now - session.last_seen > self.ttl_seconds

    def prune(self) -> int:
        now = self._clock()
        stale = [sid for sid, s in self._sessions.items() if self._expired(s, now)]
        for sid in stale:
            del self._sessions[sid]
        if stale:
            logger.info("Expired %d idle sessions.", len(stale))
        return len(stale)

    def create(self) -> AssessmentSession:
        self.prune()
        while len(self._sessions) >= self.max_sessions:
            oldest = min(self._sessions.values(), key=lambda s: s.last_seen)
            del self._sessions[oldest.session_id]
            logger.warning("Session limit reached; evicted the least recently used session.")

        session = AssessmentSession(secrets.token_hex(32), now=self._clock())
        self._sessions[session.session_id] = session
        logger.info("Session created (%d active).", len(self._sessions))
        return session

    def get(self, session_id: str | None) -> AssessmentSession | None:
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = self._clock()
        if self._expired(session, now):
            del self._sessions[session_id]
            logger.info("Session expired (%d active).", len(self._sessions))
            return None
        session.last_seen = now
        return session

    def drop(self, session_id: str | None) -> None:
        if session_id and self._sessions.pop(session_id, None) is not None:
            logger.info("Session dropped (%d active).", len(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache
def get_session_store() -> SessionStore:
    settings = get_settings()
    return SessionStore(ttl_seconds=settings.session_ttl, max_sessions=settings.max_sessions)
