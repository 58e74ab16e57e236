"""Application settings with environment-driven configuration.

Why: Only place that reads the environment; credentials double as
     capability switches (a blank key means the capability is off).
"""

import os
from dataclasses import dataclass, field

PACKAGED_CONTEXT_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "resources", "context"
)


def _csv(value: str) -> tuple[str, ...]:
    return tuple(v.strip() for v in value.split(",") if v.strip())


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    This is the ONLY place where environment variables are read.
    All other layers receive settings via dependency injection.

    Capability keys:
    - openrouter_api_key: generative-text
    - google_cloud_api_key: speech and vision
    - google_maps_api_key: geo-places
    """

    # ===== Documents =====
    context_dir: str = field(
        default_factory=lambda: os.getenv("CONTEXT_DIR", PACKAGED_CONTEXT_DIR)
    )

    # ===== Generative text (OpenAI-compatible, OpenRouter) =====
    openrouter_api_key: str = field(default_factory=lambda: os.getenv("OPENROUTER_API_KEY", ""))
    openrouter_base_url: str = field(
        default_factory=lambda: os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    )
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "openai/gpt-4o-mini"))
    llm_timeout_s: float = field(default_factory=lambda: float(os.getenv("LLM_TIMEOUT_S", "20")))
    llm_max_tokens: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "1000")))
    llm_temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.7"))
    )

    # ===== Google =====
    google_cloud_api_key: str = field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_API_KEY", "")
    )
    google_cloud_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("GOOGLE_CLOUD_TIMEOUT_S", "15"))
    )
    google_maps_api_key: str = field(default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY", ""))
    places_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("PLACES_TIMEOUT_S", "10"))
    )

    # ===== Rate limiting =====
    rate_limits: str = field(default_factory=lambda: os.getenv("RATE_LIMITS", ""))
    # e.g. "query=5/60,voice=2/30" (requests / window seconds); merged over defaults

    rate_limit_idle_ttl_s: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_IDLE_TTL_S", "900"))
    )
    rate_limit_max_windows: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_MAX_WINDOWS", "10000"))
    )

    # ===== HTTP / logging =====
    allowed_origins: tuple[str, ...] = field(
        default_factory=lambda: _csv(os.getenv("ALLOWED_ORIGINS", "http://localhost:5173"))
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
