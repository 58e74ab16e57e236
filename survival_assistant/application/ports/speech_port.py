"""Speech-to-text port.

Why (SAM): Voice input is just another way to type a query; the provider
(Google Cloud Speech today) stays in infrastructure.
"""

from typing import Protocol, runtime_checkable

from survival_assistant.domain.models import Transcription

ENGLISH_INDIA = "en-IN"
KANNADA = "kn-IN"
SUPPORTED_LANGUAGES = (ENGLISH_INDIA, KANNADA)


@runtime_checkable
class SpeechPort(Protocol):
    def transcribe(
        self, audio: bytes, mime_type: str, language_code: str = ENGLISH_INDIA
    ) -> Transcription:
        """Transcribe one short utterance.

        Raises:
            SpeechError: on any provider failure or timeout.
        """
        ...
