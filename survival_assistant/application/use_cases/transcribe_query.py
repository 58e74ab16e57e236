# survival_assistant/application/use_cases/transcribe_query.py
from __future__ import annotations

import logging

from survival_assistant.application.dto.media_dto import (
    MAX_AUDIO_BYTES,
    MIN_AUDIO_BYTES,
    SUPPORTED_AUDIO_TYPES,
    VoiceRequest,
)
from survival_assistant.application.ports.speech_port import SUPPORTED_LANGUAGES, SpeechPort
from survival_assistant.application.services.admission_controller import AdmissionController
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.domain.errors import (
    DomainError,
    RateLimitExceeded,
    SpeechError,
    ValidationError,
)
from survival_assistant.domain.models import Capability, Transcription
from survival_assistant.domain.types import Result

logger = logging.getLogger(__name__)

VOICE_RESOURCE = "voice"
TYPE_INSTEAD = (
    "Voice transcription service is not available. Please type your question instead."
)


class TranscribeQuery:
    """
    Turn a spoken question into query text.

    When speech is not configured or the provider fails, the result is an
    empty, non-speech-powered Transcription; the caller suggests typing.
    """

    def __init__(
        self,
        admission: AdmissionController,
        registry: CapabilityRegistry,
        speech: SpeechPort | None = None,
    ) -> None:
        self.admission = admission
        self.registry = registry
        self.speech = speech

    def execute(self, req: VoiceRequest) -> Result[Transcription, DomainError]:
        # 1) Validate
        mime_type = (req.mime_type or "").strip().lower()
        if not req.audio:
            return Result.failure(ValidationError("empty audio"))
        if mime_type not in SUPPORTED_AUDIO_TYPES:
            supported = ", ".join(sorted(SUPPORTED_AUDIO_TYPES))
            return Result.failure(
                ValidationError(f"unsupported audio format '{req.mime_type}' ({supported})")
            )
        if len(req.audio) < MIN_AUDIO_BYTES:
            return Result.failure(
                ValidationError("audio file too small - may be corrupted or empty")
            )
        if len(req.audio) > MAX_AUDIO_BYTES:
            return Result.failure(ValidationError("audio is larger than 25MB"))
        if req.language_code not in SUPPORTED_LANGUAGES:
            return Result.failure(
                ValidationError(
                    f"unsupported language '{req.language_code}' "
                    f"({', '.join(SUPPORTED_LANGUAGES)})"
                )
            )

        # 2) Admission
        decision = self.admission.check(VOICE_RESOURCE, req.identifier)
        if not decision.allowed:
            assert decision.retry_after is not None
            return Result.failure(
                RateLimitExceeded(VOICE_RESOURCE, decision.retry_after, decision.reset_at)
            )

        # 3) Transcribe
        if self.speech is None or not self.registry.is_available(Capability.SPEECH):
            logger.warning("Voice transcription fallback: speech capability not configured")
            return Result.success(self._fallback(req.language_code))
        try:
            result = self.speech.transcribe(req.audio, mime_type, req.language_code)
        except SpeechError as ex:
            logger.warning("Voice transcription fallback: %s", ex)
            return Result.success(self._fallback(req.language_code))
        return Result.success(result)

    @staticmethod
    def _fallback(language_code: str) -> Transcription:
        return Transcription(text="", confidence=0.0, language=language_code, speech_powered=False)
