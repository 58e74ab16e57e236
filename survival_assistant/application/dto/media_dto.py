# survival_assistant/application/dto/media_dto.py
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from survival_assistant.application.ports.speech_port import ENGLISH_INDIA

MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_AUDIO_BYTES = 25 * 1024 * 1024
MIN_AUDIO_BYTES = 100
SUPPORTED_AUDIO_TYPES = frozenset(
    {
        "audio/wav",
        "audio/wave",
        "audio/x-wav",
        "audio/mp3",
        "audio/mpeg",
        "audio/webm",
        "audio/ogg",
        "audio/flac",
        "audio/m4a",
        "audio/mp4",
    }
)


@dataclass(frozen=True)
class ImageRequest:
    """
    DTO for interpreting a photographed sign, menu or notice.

    - image: raw image bytes, read with the vision capability
    - text: sign text the caller already has; takes precedence over ``image``
    - active_document_ids / context_enabled: as for a query
    - identifier: rate-limit key
    """

    image: bytes | None = None
    text: str | None = None
    active_document_ids: Sequence[str] = ()
    context_enabled: bool = True
    identifier: str = "anonymous"


@dataclass(frozen=True)
class VoiceRequest:
    audio: bytes
    mime_type: str
    language_code: str = ENGLISH_INDIA
    identifier: str = "anonymous"
