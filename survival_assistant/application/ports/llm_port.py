from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ChatMessage:
    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass(frozen=True)
class LLMResponse:
    text: str
    finish_reason: str = "stop"
    usage_tokens: int | None = None


@runtime_checkable
class LLMPort(Protocol):
    def chat(
        self, messages: Sequence[ChatMessage], temperature: float = 0.7, max_tokens: int = 1000
    ) -> LLMResponse:
        """Run one chat completion.

        Raises:
            LLMError: on network failure, timeout, non-2xx status or any other
                upstream problem. Adapters never leak vendor exceptions.
        """
        ...
