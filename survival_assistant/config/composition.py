from datetime import timedelta

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.application.ports.llm_port import LLMPort
from survival_assistant.application.ports.places_port import PlacesPort
from survival_assistant.application.ports.session_store_port import SessionStorePort
from survival_assistant.application.ports.speech_port import SpeechPort
from survival_assistant.application.ports.vision_port import VisionPort
from survival_assistant.application.services.admission_controller import (
    AdmissionController,
    RateLimitPolicy,
    parse_rate_limits,
)
from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.application.services.document_store import DocumentStore
from survival_assistant.application.services.geo_recommender import GeoRecommender
from survival_assistant.application.services.retrieval_engine import RetrievalEngine
from survival_assistant.application.use_cases.answer_query import AnswerQuery
from survival_assistant.application.use_cases.answer_strategies import (
    FallbackStrategy,
    GenerativeStrategy,
)
from survival_assistant.application.use_cases.interpret_image import InterpretImage
from survival_assistant.application.use_cases.transcribe_query import TranscribeQuery
from survival_assistant.config.settings import AppSettings
from survival_assistant.domain.models import Capability
from survival_assistant.infrastructure.llm.openrouter_adapter import OpenRouterAdapter
from survival_assistant.infrastructure.parsing.text_loader import PlainTextLoaderAdapter
from survival_assistant.infrastructure.places.google_places_adapter import GooglePlacesAdapter
from survival_assistant.infrastructure.sessions.in_memory_session_store import (
    InMemorySessionStore,
)
from survival_assistant.infrastructure.speech.google_speech_adapter import GoogleSpeechAdapter
from survival_assistant.infrastructure.time.system_clock import SystemClock
from survival_assistant.infrastructure.vision.google_vision_adapter import GoogleVisionAdapter


def build_clock() -> ClockPort:
    """Build clock adapter for time operations.

    Note:
        Tests should inject FakeClock or similar test doubles instead.
    """
    return SystemClock()


def build_document_store(settings: AppSettings, clock: ClockPort) -> DocumentStore:
    return DocumentStore(
        loader=PlainTextLoaderAdapter(), clock=clock, context_dir=settings.context_dir
    )


def build_rate_limit_policy(settings: AppSettings) -> RateLimitPolicy:
    """Defaults merged with ``RATE_LIMITS`` overrides (ValidationError if malformed)."""
    policy = RateLimitPolicy()
    if settings.rate_limits.strip():
        policy = policy.with_overrides(parse_rate_limits(settings.rate_limits))
    return policy


def build_admission_controller(settings: AppSettings, clock: ClockPort) -> AdmissionController:
    return AdmissionController(
        clock=clock,
        policy=build_rate_limit_policy(settings),
        idle_ttl=timedelta(seconds=settings.rate_limit_idle_ttl_s),
        max_windows=settings.rate_limit_max_windows,
    )


def build_llm(settings: AppSettings) -> LLMPort:
    return OpenRouterAdapter(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        model=settings.llm_model,
        timeout_s=settings.llm_timeout_s,
    )


def build_places(settings: AppSettings) -> PlacesPort:
    return GooglePlacesAdapter(
        api_key=settings.google_maps_api_key, timeout_s=settings.places_timeout_s
    )


def build_vision(settings: AppSettings) -> VisionPort:
    return GoogleVisionAdapter(
        api_key=settings.google_cloud_api_key, timeout_s=settings.google_cloud_timeout_s
    )


def build_speech(settings: AppSettings) -> SpeechPort:
    return GoogleSpeechAdapter(
        api_key=settings.google_cloud_api_key, timeout_s=settings.google_cloud_timeout_s
    )


def build_session_store() -> SessionStorePort:
    return InMemorySessionStore()


def build_answer_use_case(
    settings: AppSettings,
    store: DocumentStore,
    admission: AdmissionController,
    registry: CapabilityRegistry,
) -> AnswerQuery:
    """Wire the orchestrator; adapters for unconfigured capabilities are not built."""
    generative = None
    if registry.is_available(Capability.GENERATIVE_TEXT):
        generative = GenerativeStrategy(
            llm=build_llm(settings),
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )
    places = build_places(settings) if registry.is_available(Capability.GEO_PLACES) else None
    return AnswerQuery(
        store=store,
        admission=admission,
        registry=registry,
        fallback=FallbackStrategy(RetrievalEngine(store)),
        generative=generative,
        geo=GeoRecommender(store=store, registry=registry, places=places),
    )


def build_interpret_image_use_case(
    settings: AppSettings,
    store: DocumentStore,
    admission: AdmissionController,
    registry: CapabilityRegistry,
) -> InterpretImage:
    vision = build_vision(settings) if registry.is_available(Capability.VISION) else None
    llm = build_llm(settings) if registry.is_available(Capability.GENERATIVE_TEXT) else None
    return InterpretImage(
        store=store,
        admission=admission,
        registry=registry,
        vision=vision,
        llm=llm,
        temperature=settings.llm_temperature,
    )


def build_transcribe_use_case(
    settings: AppSettings, admission: AdmissionController, registry: CapabilityRegistry
) -> TranscribeQuery:
    speech = build_speech(settings) if registry.is_available(Capability.SPEECH) else None
    return TranscribeQuery(admission=admission, registry=registry, speech=speech)
