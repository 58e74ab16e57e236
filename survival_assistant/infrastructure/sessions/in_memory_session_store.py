from __future__ import annotations

import threading

from survival_assistant.application.ports.session_store_port import SessionStorePort
from survival_assistant.domain.models import SessionPreferences


class InMemorySessionStore(SessionStorePort):
    """Process-local session preferences; lost on restart, last write wins."""

    def __init__(self) -> None:
        self._data: dict[str, SessionPreferences] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> SessionPreferences | None:
        with self._lock:
            return self._data.get(session_id)

    def save(self, prefs: SessionPreferences) -> None:
        with self._lock:
            self._data[prefs.session_id] = prefs
