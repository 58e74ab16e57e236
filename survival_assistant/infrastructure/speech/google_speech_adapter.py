"""Google Cloud Speech-to-Text ``speech:recognize`` adapter (httpx)."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass

import httpx

from survival_assistant.application.ports.speech_port import ENGLISH_INDIA, KANNADA, SpeechPort
from survival_assistant.domain.errors import SpeechError
from survival_assistant.domain.models import Transcription

logger = logging.getLogger(__name__)

RECOGNIZE_URL = "https://speech.googleapis.com/v1/speech:recognize"
SAMPLE_RATE_HZ = 16000

ENCODINGS = {
    "audio/wav": "LINEAR16",
    "audio/wave": "LINEAR16",
    "audio/x-wav": "LINEAR16",
    "audio/mp3": "MP3",
    "audio/mpeg": "MP3",
    "audio/webm": "WEBM_OPUS",
    "audio/ogg": "OGG_OPUS",
    "audio/flac": "FLAC",
    "audio/m4a": "MP3",  # approximate
    "audio/mp4": "MP3",  # approximate
}


def encoding_for(mime_type: str) -> str:
    return ENCODINGS.get(mime_type.lower(), "LINEAR16")


@dataclass
class GoogleSpeechAdapter(SpeechPort):
    api_key: str
    timeout_s: float = 15.0
    base_url: str = RECOGNIZE_URL
    transport: httpx.BaseTransport | None = None  # tests inject httpx.MockTransport

    def transcribe(
        self, audio: bytes, mime_type: str, language_code: str = ENGLISH_INDIA
    ) -> Transcription:
        alternative = KANNADA if language_code == ENGLISH_INDIA else ENGLISH_INDIA
        payload = {
            "config": {
                "encoding": encoding_for(mime_type),
                "sampleRateHertz": SAMPLE_RATE_HZ,
                "languageCode": language_code,
                "enableAutomaticPunctuation": True,
                "model": "command_and_search",
                "alternativeLanguageCodes": [alternative],
            },
            "audio": {"content": base64.b64encode(audio).decode("ascii")},
        }
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                response = client.post(self.base_url, params={"key": self.api_key}, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as ex:
            raise SpeechError(f"speech request timed out after {self.timeout_s}s") from ex
        except httpx.HTTPStatusError as ex:
            raise SpeechError(f"speech HTTP error {ex.response.status_code}") from ex
        except (httpx.HTTPError, ValueError) as ex:
            raise SpeechError(f"speech request failed: {ex}") from ex

        try:
            results = data.get("results") or []
            best = [(r.get("alternatives") or [{}])[0] for r in results]
            text = " ".join(str(b.get("transcript") or "") for b in best).strip()
            confidences = [float(b.get("confidence") or 0) for b in best]
            language = str(results[0].get("languageCode") or language_code) if results else ""
        except (AttributeError, IndexError, TypeError, ValueError) as ex:
            raise SpeechError(f"malformed speech response: {ex}") from ex

        scored = [c for c in confidences if c > 0]
        confidence = sum(scored) / len(scored) if scored else 0.0
        logger.info(
            "Transcribed %d bytes of %s (confidence %.2f)", len(audio), mime_type, confidence
        )
        return Transcription(text=text, confidence=confidence, language=language or language_code)
