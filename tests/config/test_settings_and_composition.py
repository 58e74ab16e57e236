"""Tests for settings, composition helpers and the container."""

from datetime import UTC, datetime, timedelta

import pytest

from survival_assistant.application.ports.clock_port import ClockPort
from survival_assistant.config import composition
from survival_assistant.config.compose import Container, build_container
from survival_assistant.config.settings import PACKAGED_CONTEXT_DIR, AppSettings
from survival_assistant.domain.errors import ValidationError
from survival_assistant.infrastructure.llm.openrouter_adapter import OpenRouterAdapter
from survival_assistant.infrastructure.places.google_places_adapter import GooglePlacesAdapter
from survival_assistant.infrastructure.speech.google_speech_adapter import GoogleSpeechAdapter
from survival_assistant.infrastructure.vision.google_vision_adapter import GoogleVisionAdapter

ENV_KEYS = (
    "CONTEXT_DIR",
    "OPENROUTER_API_KEY",
    "GOOGLE_CLOUD_API_KEY",
    "GOOGLE_MAPS_API_KEY",
    "RATE_LIMITS",
    "ALLOWED_ORIGINS",
    "LOG_LEVEL",
)


class FakeClock(ClockPort):
    def __init__(self) -> None:
        self.t = datetime(2024, 1, 1, tzinfo=UTC)

    def now(self) -> datetime:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += timedelta(seconds=seconds)


@pytest.fixture
def clean_env(monkeypatch):  # type: ignore[no-untyped-def]
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def blank_settings(**overrides: object) -> AppSettings:
    values: dict[str, object] = {
        "openrouter_api_key": "",
        "google_cloud_api_key": "",
        "google_maps_api_key": "",
        "rate_limits": "",
    }
    values.update(overrides)
    return AppSettings(**values)  # type: ignore[arg-type]


class TestAppSettings:
    def test_defaults(self, clean_env):
        s = AppSettings()
        assert s.context_dir == PACKAGED_CONTEXT_DIR
        assert s.openrouter_api_key == ""
        assert s.llm_max_tokens == 1000
        assert s.allowed_origins == ("http://localhost:5173",)
        assert s.log_level == "INFO"

    def test_env_overrides(self, clean_env):
        clean_env.setenv("CONTEXT_DIR", "/tmp/ctx")
        clean_env.setenv("OPENROUTER_API_KEY", "sk-or")
        clean_env.setenv("ALLOWED_ORIGINS", "http://a.test, http://b.test,")
        clean_env.setenv("LOG_LEVEL", "debug")
        s = AppSettings()
        assert s.context_dir == "/tmp/ctx"
        assert s.openrouter_api_key == "sk-or"
        assert s.allowed_origins == ("http://a.test", "http://b.test")
        assert s.log_level == "DEBUG"

    def test_frozen(self) -> None:
        s = blank_settings()
        with pytest.raises(AttributeError):
            s.llm_model = "other"  # type: ignore[misc]


class TestComposition:
    def test_rate_limit_overrides(self) -> None:
        policy = composition.build_rate_limit_policy(
            blank_settings(rate_limits="query=5/60,default=50/30")
        )
        assert policy.rule_for("query").max_requests == 5
        assert policy.rule_for("voice").max_requests == 10
        assert policy.rule_for("unknown").window == timedelta(seconds=30)

    def test_malformed_rate_limits(self) -> None:
        with pytest.raises(ValidationError):
            composition.build_rate_limit_policy(blank_settings(rate_limits="query=lots"))

    def test_adapters_only_for_configured_capabilities(self) -> None:
        c = Container(blank_settings(), clock=FakeClock())
        uc = c.get_answer_use_case()
        assert uc.generative is None
        assert uc.geo is not None and uc.geo.places is None

    def test_adapters_built_from_keys(self) -> None:
        settings = blank_settings(openrouter_api_key="sk-or", google_maps_api_key="maps")
        uc = Container(settings, clock=FakeClock()).get_answer_use_case()
        assert uc.generative is not None
        assert isinstance(uc.generative.llm, OpenRouterAdapter)  # type: ignore[attr-defined]
        assert uc.geo is not None and isinstance(uc.geo.places, GooglePlacesAdapter)

    def test_media_use_cases_without_keys(self) -> None:
        c = Container(blank_settings(), clock=FakeClock())
        assert c.get_interpret_image().vision is None
        assert c.get_interpret_image().llm is None
        assert c.get_transcribe_query().speech is None

    def test_media_adapters_from_cloud_key(self) -> None:
        settings = blank_settings(google_cloud_api_key="cloud", google_cloud_timeout_s=5.0)
        c = Container(settings, clock=FakeClock())
        vision = c.get_interpret_image().vision
        speech = c.get_transcribe_query().speech
        assert isinstance(vision, GoogleVisionAdapter) and vision.api_key == "cloud"
        assert isinstance(speech, GoogleSpeechAdapter) and speech.timeout_s == 5.0


class TestContainer:
    def test_shared_instances(self) -> None:
        c = Container(blank_settings(), clock=FakeClock())
        assert c.get_document_store() is c.get_document_store()
        assert c.get_admission_controller() is c.get_admission_controller()
        assert c.get_answer_use_case().store is c.get_document_store()
        assert c.get_interpret_image() is c.get_interpret_image()
        assert c.get_interpret_image().store is c.get_document_store()
        assert c.get_transcribe_query().admission is c.get_admission_controller()

    def test_sweep_runs_at_most_once_per_interval(self) -> None:
        clock = FakeClock()
        c = Container(blank_settings(rate_limit_idle_ttl_s=60), clock=clock)
        c.get_admission_controller().check("query", "a")
        assert c.sweep_rate_windows() == 0
        clock.advance(61)
        assert c.sweep_rate_windows() == 1
        c.get_admission_controller().check("query", "b")
        clock.advance(30)
        assert c.sweep_rate_windows() == 0  # too soon after the last sweep

    def test_build_container_preloads_documents(self, clean_env):
        c = build_container(blank_settings(context_dir=PACKAGED_CONTEXT_DIR))
        loaded = [d.id for d in c.get_list_documents().execute() if d.is_loaded]
        assert loaded == ["city", "slang", "food", "traffic", "etiquette"]
