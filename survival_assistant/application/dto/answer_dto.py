# survival_assistant/application/dto/answer_dto.py
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from survival_assistant.domain.models import Coordinates, Persona

MAX_QUERY_CHARS = 5000


@dataclass(frozen=True)
class AnswerRequest:
    """
    DTO for answering one query.

    - query: free text (non-empty, at most 5000 chars)
    - persona: persona tag; None means the default persona
    - context_enabled: when False no document is consulted
    - active_document_ids: ids the caller opted into, in priority order
    - location: optional coordinates for food recommendations
    - identifier: rate-limit key (session id or client address)
    """

    query: str
    persona: Persona | str | None = None
    context_enabled: bool = True
    active_document_ids: Sequence[str] = ()
    location: Coordinates | None = None
    identifier: str = "anonymous"
