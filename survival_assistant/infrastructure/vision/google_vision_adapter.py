"""Google Cloud Vision text detection plus Translation v2 (httpx).

Non-English text is translated to English; a failed translation keeps the
original text.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from survival_assistant.application.ports.vision_port import VisionPort
from survival_assistant.domain.errors import VisionError
from survival_assistant.domain.models import SignText

logger = logging.getLogger(__name__)

ANNOTATE_URL = "https://vision.googleapis.com/v1/images:annotate"
TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"


@dataclass
class GoogleVisionAdapter(VisionPort):
    api_key: str
    timeout_s: float = 15.0
    annotate_url: str = ANNOTATE_URL
    translate_url: str = TRANSLATE_URL
    transport: httpx.BaseTransport | None = None  # tests inject httpx.MockTransport

    def _post(self, client: httpx.Client, url: str, payload: dict[str, Any]) -> Any:
        response = client.post(url, params={"key": self.api_key}, json=payload)
        response.raise_for_status()
        return response.json()

    def read_text(self, image: bytes) -> SignText:
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "TEXT_DETECTION"}],
                }
            ]
        }
        with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
            try:
                data = self._post(client, self.annotate_url, payload)
            except httpx.TimeoutException as ex:
                raise VisionError(f"vision request timed out after {self.timeout_s}s") from ex
            except httpx.HTTPStatusError as ex:
                raise VisionError(f"vision HTTP error {ex.response.status_code}") from ex
            except (httpx.HTTPError, ValueError) as ex:
                raise VisionError(f"vision request failed: {ex}") from ex

            try:
                first = (data.get("responses") or [{}])[0]
                if first.get("error"):
                    raise VisionError(f"vision API error: {first['error'].get('message', '')}")
                annotations = first.get("textAnnotations") or []
                text = str(annotations[0].get("description") or "").strip() if annotations else ""
                locale = str(annotations[0].get("locale") or "en") if annotations else "en"
            except (AttributeError, IndexError, KeyError, TypeError) as ex:
                raise VisionError(f"malformed vision response: {ex}") from ex

            if not text:
                return SignText(text="")
            language = locale.lower().split("-")[0]
            if language == "en":
                return SignText(text=text, detected_language=language)
            return SignText(
                text=text,
                detected_language=language,
                translated_text=self._translate(client, text, language),
            )

    def _translate(self, client: httpx.Client, text: str, source: str) -> str:
        payload = {"q": text, "source": source, "target": "en", "format": "text"}
        try:
            data = self._post(client, self.translate_url, payload)
            return str(data["data"]["translations"][0]["translatedText"])
        except (httpx.HTTPError, ValueError, LookupError, TypeError) as ex:
            logger.warning("Translation from %s failed, keeping original text: %s", source, ex)
            return text
