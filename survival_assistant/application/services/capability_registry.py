"""Capability Registry: which optional external services are usable.

Built once at startup from configuration presence checks. Downstream code
asks ``is_available`` instead of inspecting keys itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from survival_assistant.domain.models import Capability, CapabilityStatus

if TYPE_CHECKING:
    from survival_assistant.config.settings import AppSettings

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    def __init__(self, configured: Mapping[Capability, bool]) -> None:
        self._configured = MappingProxyType({c: bool(configured.get(c, False)) for c in Capability})
        for capability, on in self._configured.items():
            if on:
                logger.info("Capability %s configured", capability.value)
            else:
                logger.warning("Capability %s not configured; using fallback", capability.value)

    @classmethod
    def from_settings(cls, settings: "AppSettings") -> "CapabilityRegistry":
        def present(value: str | None) -> bool:
            return bool(value and value.strip())

        return cls(
            {
                Capability.GENERATIVE_TEXT: present(settings.openrouter_api_key),
                Capability.SPEECH: present(settings.google_cloud_api_key),
                Capability.VISION: present(settings.google_cloud_api_key),
                Capability.GEO_PLACES: present(settings.google_maps_api_key),
            }
        )

    def is_available(self, capability: Capability) -> bool:
        return self._configured[capability]

    def statuses(self) -> list[CapabilityStatus]:
        return [CapabilityStatus(name=c, configured=on) for c, on in self._configured.items()]

    def describe(self) -> str:
        """e.g. ``generative-text: on | speech: off | vision: off | geo-places: on``"""
        return " | ".join(
            f"{c.value}: {'on' if on else 'off'}" for c, on in self._configured.items()
        )
