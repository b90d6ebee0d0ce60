from __future__ import annotations

import logging
import time
from typing import Dict, Optional

from app.core.config import get_settings
from app.features.quiz.gate import QuizGate

logger = logging.getLogger("quiz.sessions")


class QuizSessionStore:
    """Process-local registry of open gates, keyed by gate id.

    Gates idle for longer than the TTL are dropped on the next access, which
    is the same as the user navigating away: no attempt is written.
    """

    def __init__(self, ttl_seconds: Optional[int] = None) -> None:
        self._ttl_seconds = ttl_seconds
        self._gates: Dict[str, QuizGate] = {}

    @property
    def ttl_seconds(self) -> int:
        if self._ttl_seconds is not None:
            return self._ttl_seconds
        return get_settings().quiz_session_ttl_seconds

    def _evict_expired(self) -> None:
        cutoff = time.monotonic() - max(1, self.ttl_seconds)
        expired = [gid for gid, gate in self._gates.items() if gate.last_seen < cutoff]
        for gid in expired:
            self._gates.pop(gid, None)
        if expired:
            logger.info("quiz_sessions_evicted count=%d", len(expired))

    def add(self, gate: QuizGate) -> QuizGate:
        self._evict_expired()
        self._gates[gate.gate_id] = gate
        return gate

    def get(self, gate_id: str, user_id: str) -> Optional[QuizGate]:
        """Return the gate if it exists and belongs to ``user_id``."""
        self._evict_expired()
        gate = self._gates.get(gate_id)
        if gate is None or gate.user_id != user_id:
            return None
        gate.touch()
        return gate

    def discard(self, gate_id: str) -> Optional[QuizGate]:
        return self._gates.pop(gate_id, None)

    def clear(self) -> None:
        self._gates.clear()

    def __len__(self) -> int:
        return len(self._gates)


quiz_sessions = QuizSessionStore()
