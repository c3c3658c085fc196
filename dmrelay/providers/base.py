"""LLM provider interface used by the agent."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Literal


@dataclass
class ToolCallRequest:
    """One function call requested by the model."""
    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class LLMResponse:
    """A complete model turn: text, tool calls, or both."""
    content: str | None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    finish_reason: str = "stop"

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass
class LLMStreamEvent:
    """Either a text delta or, last, the assembled response."""

    type: Literal["delta", "final"]
    delta: str = ""
    response: LLMResponse | None = None


class LLMProvider(ABC):
    """
    Chat-completion backend for :class:`~dmrelay.agent.runner.ToolCallingAgent`.

    Transport and API failures are raised, never turned into response text,
    so the relay can tell an upstream rate limit from other errors.
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Run one completion and return the whole response."""

    async def stream_chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> AsyncIterator[LLMStreamEvent]:
        """Stream one completion. Without native streaming only the final event is sent."""
        response = await self.chat(messages, tools, model, max_tokens, temperature)
        yield LLMStreamEvent(type="final", response=response)

    @abstractmethod
    def get_default_model(self) -> str:
        """Model used when the caller does not name one."""
