from typing import Protocol

from survival_assistant.domain.models import SessionPreferences


class SessionStorePort(Protocol):
    """Key-value store for session preferences keyed by an opaque session id."""

    def get(self, session_id: str) -> SessionPreferences | None: ...

    def save(self, prefs: SessionPreferences) -> None:
        """Store ``prefs``; last write wins."""
        ...
