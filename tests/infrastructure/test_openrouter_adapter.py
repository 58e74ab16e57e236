"""Tests for the OpenRouter (OpenAI-compatible) adapter with a fake client."""

from types import SimpleNamespace
from typing import Any

import pytest

from survival_assistant.application.ports.llm_port import ChatMessage, LLMPort
from survival_assistant.domain.errors import LLMError
from survival_assistant.infrastructure.llm.openrouter_adapter import OpenRouterAdapter


class FakeCompletions:
    def __init__(self, content: str | None = "Namaskara!", error: Exception | None = None):
        self.content = content
        self.error = error
        self.kwargs: dict[str, Any] = {}

    def create(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message, finish_reason="stop")],
            usage=SimpleNamespace(total_tokens=42),
        )


def make_adapter(completions: FakeCompletions) -> OpenRouterAdapter:
    adapter = OpenRouterAdapter(api_key="sk-or", model="test/model")
    adapter._client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return adapter


MESSAGES = [ChatMessage("system", "Be helpful."), ChatMessage("user", "Hi")]


class TestOpenRouterAdapter:
    def test_satisfies_port(self) -> None:
        assert isinstance(OpenRouterAdapter(api_key="k"), LLMPort)

    def test_chat(self) -> None:
        completions = FakeCompletions()
        resp = make_adapter(completions).chat(MESSAGES, temperature=0.3, max_tokens=50)
        assert resp.text == "Namaskara!"
        assert resp.usage_tokens == 42
        assert completions.kwargs["model"] == "test/model"
        assert completions.kwargs["temperature"] == 0.3
        assert completions.kwargs["max_tokens"] == 50
        assert completions.kwargs["messages"] == [
            {"role": "system", "content": "Be helpful."},
            {"role": "user", "content": "Hi"},
        ]

    def test_vendor_error_becomes_llm_error(self) -> None:
        adapter = make_adapter(FakeCompletions(error=RuntimeError("502 Bad Gateway")))
        with pytest.raises(LLMError, match="502 Bad Gateway"):
            adapter.chat(MESSAGES)

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_completion(self, content: str | None) -> None:
        with pytest.raises(LLMError, match="empty"):
            make_adapter(FakeCompletions(content=content)).chat(MESSAGES)
