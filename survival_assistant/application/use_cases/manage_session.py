# survival_assistant/application/use_cases/manage_session.py
from __future__ import annotations

from collections.abc import Sequence

from survival_assistant.application.ports.session_store_port import SessionStorePort
from survival_assistant.domain.errors import ValidationError
from survival_assistant.domain.models import Persona, SessionPreferences
from survival_assistant.domain.services.personas import parse_persona
from survival_assistant.domain.types import Result


class ManageSession:
    """Read and update per-session preferences (last write wins)."""

    def __init__(self, sessions: SessionStorePort) -> None:
        self.sessions = sessions

    def get(self, session_id: str) -> SessionPreferences:
        # A missing record is not an error: callers get the defaults.
        return self.sessions.get(session_id) or SessionPreferences(session_id=session_id)

    def update(
        self,
        session_id: str,
        persona: Persona | str | None = None,
        active_document_ids: Sequence[str] | None = None,
        context_enabled: bool | None = None,
    ) -> Result[SessionPreferences, ValidationError]:
        if not session_id or not session_id.strip():
            return Result.failure(ValidationError("session id must not be empty"))
        current = self.get(session_id)

        new_persona = current.persona
        if persona is not None:
            parsed = parse_persona(persona)
            if parsed is None:
                return Result.failure(ValidationError(f"unknown persona '{persona}'"))
            new_persona = parsed

        prefs = SessionPreferences(
            session_id=session_id,
            persona=new_persona,
            active_document_ids=(
                tuple(dict.fromkeys(active_document_ids))
                if active_document_ids is not None
                else current.active_document_ids
            ),
            context_enabled=current.context_enabled if context_enabled is None else context_enabled,
        )
        self.sessions.save(prefs)
        return Result.success(prefs)
