"""Application ports package.

Re-exports every port so callers can import from one place.
"""

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.application.ports.document_loader_port import (
    DocumentLoaderPort,
    DocumentPayload,
)
from survival_assistant.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from survival_assistant.application.ports.places_port import PlacesPort
from survival_assistant.application.ports.session_store_port import SessionStorePort
from survival_assistant.application.ports.speech_port import SpeechPort
from survival_assistant.application.ports.vision_port import VisionPort

__all__ = [
    "ClockPort",
    "DocumentLoaderPort",
    "DocumentPayload",
    "LLMPort",
    "ChatMessage",
    "LLMResponse",
    "PlacesPort",
    "SessionStorePort",
    "SpeechPort",
    "VisionPort",
]
