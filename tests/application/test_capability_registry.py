"""Tests for the Capability Registry."""

from survival_assistant.application.services.capability_registry import CapabilityRegistry
from survival_assistant.config.settings import AppSettings
from survival_assistant.domain.models import Capability


def settings(**keys: str) -> AppSettings:
    base = {"openrouter_api_key": "", "google_cloud_api_key": "", "google_maps_api_key": ""}
    base.update(keys)
    return AppSettings(**base)  # type: ignore[arg-type]


class TestCapabilityRegistry:
    def test_nothing_configured(self) -> None:
        registry = CapabilityRegistry.from_settings(settings())
        assert not any(registry.is_available(c) for c in Capability)
        assert registry.describe() == (
            "generative-text: off | speech: off | vision: off | geo-places: off"
        )

    def test_keys_switch_capabilities(self) -> None:
        registry = CapabilityRegistry.from_settings(
            settings(openrouter_api_key="sk-or", google_maps_api_key="maps")
        )
        assert registry.is_available(Capability.GENERATIVE_TEXT)
        assert registry.is_available(Capability.GEO_PLACES)
        assert not registry.is_available(Capability.SPEECH)

    def test_cloud_key_enables_speech_and_vision(self) -> None:
        registry = CapabilityRegistry.from_settings(settings(google_cloud_api_key="gc"))
        assert registry.is_available(Capability.SPEECH)
        assert registry.is_available(Capability.VISION)

    def test_blank_key_is_not_configured(self) -> None:
        registry = CapabilityRegistry.from_settings(settings(openrouter_api_key="   "))
        assert not registry.is_available(Capability.GENERATIVE_TEXT)

    def test_missing_entries_default_to_off(self) -> None:
        registry = CapabilityRegistry({Capability.SPEECH: True})
        statuses = {s.name: s.configured for s in registry.statuses()}
        assert statuses == {
            Capability.GENERATIVE_TEXT: False,
            Capability.SPEECH: True,
            Capability.VISION: False,
            Capability.GEO_PLACES: False,
        }

    def test_source_mapping_changes_do_not_leak(self) -> None:
        configured = {Capability.SPEECH: True}
        registry = CapabilityRegistry(configured)
        configured[Capability.SPEECH] = False
        assert registry.is_available(Capability.SPEECH)
