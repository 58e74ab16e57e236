from collections.abc import Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any, cast

from survival_assistant.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from survival_assistant.domain.errors import LLMError


@dataclass
class OpenRouterAdapter(LLMPort):
    """OpenAI-compatible chat client pointed at OpenRouter.

    No automatic retries: the caller's fallback strategy is the only retry.
    """

    api_key: str
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "openai/gpt-4o-mini"
    timeout_s: float = 20.0

    def __post_init__(self) -> None:
        # Defer import of OpenAI to chat() to avoid hard dependency in tests
        self._client: Any | None = None

    def _get_client(self) -> Any:
        if self._client is None:
            module = import_module("openai")
            self._client = module.OpenAI(
                base_url=self.base_url,
                api_key=self.api_key,
                timeout=self.timeout_s,
                max_retries=0,
            )
        return self._client

    def chat(
        self, messages: Sequence[ChatMessage], temperature: float = 0.7, max_tokens: int = 1000
    ) -> LLMResponse:
        try:
            client = self._get_client()
            payload: Any = [m.__dict__ for m in messages]
            resp: Any = client.chat.completions.create(
                model=self.model,
                messages=cast(Any, payload),
                temperature=temperature,
                max_tokens=max_tokens,
            )
            choice = resp.choices[0]
            usage = getattr(resp, "usage", None)
            text = choice.message.content or ""
        except Exception as ex:  # noqa: BLE001
            # Translate external errors to domain-specific errors
            raise LLMError(f"LLM communication failed: {ex}") from ex
        if not text.strip():
            raise LLMError("LLM returned an empty completion")
        return LLMResponse(
            text=text,
            finish_reason=choice.finish_reason or "stop",
            usage_tokens=getattr(usage, "total_tokens", None),
        )
