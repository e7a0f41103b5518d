from __future__ import annotations

import threading
import time
from collections.abc import Callable

import structlog

from services.checkout.app.config import CheckoutSettings
from services.checkout.app.engine.session import CheckoutSession

logger = structlog.get_logger(__name__)


class InMemorySessionStore:
    """Checkout sessions keyed by id.

    A session is dropped once it has gone ``ttl_seconds`` without a save or a
    lookup. Expired entries are swept on every access.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, tuple[CheckoutSession, float]] = {}
        self._lock = threading.Lock()

    def save(self, session: CheckoutSession) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            self._sessions[session.session_id] = (session, now)

    def get(self, session_id: str) -> CheckoutSession | None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            session = entry[0]
            self._sessions[session_id] = (session, now)
            return session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_expired(self, now: float) -> None:
        expired = [
            session_id
            for session_id, (_, touched) in self._sessions.items()
            if now - touched >= self._ttl_seconds
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("checkout_sessions_evicted", count=len(expired))


store = InMemorySessionStore(CheckoutSettings.from_env().session_ttl_seconds)
