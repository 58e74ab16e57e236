"""Domain errors (typed).

Why: One error family for the application layer. Adapters translate
     third-party exceptions into these before they leave infrastructure.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta


class DomainError(Exception):
    """Base class for domain-specific errors."""


class ValidationError(DomainError):
    """Malformed caller input (empty query, bad coordinates, unknown persona)."""


@dataclass(frozen=True)
class RateLimitExceeded(DomainError):
    """Admission denied for a resource/identifier pair."""

    resource: str
    retry_after: timedelta
    reset_at: datetime

    def __str__(self) -> str:
        return (
            f"rate limit exceeded for '{self.resource}', "
            f"retry after {self.retry_after.total_seconds():.1f}s"
        )


class NotFoundError(DomainError):
    """Unknown document or session id where existence was required."""


class CapabilityUnavailable(DomainError):
    """An optional capability is needed, has no fallback, and is off or failing."""


# Upstream failures (mapped from infrastructure)
class LLMError(DomainError):
    """Generative-text backend failed, timed out or returned nothing usable."""


class PlacesError(DomainError):
    """Geo-places backend failed or timed out."""


class SpeechError(DomainError):
    """Speech-to-text backend failed or timed out."""


class VisionError(DomainError):
    """Image text extraction backend failed or timed out."""


class DocumentError(DomainError):
    """Document loading failed."""
