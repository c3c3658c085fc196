"""LLM provider module for dmrelay."""

from dmrelay.providers.base import LLMProvider, LLMResponse, LLMStreamEvent, ToolCallRequest
from dmrelay.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LLMStreamEvent", "ToolCallRequest", "LiteLLMProvider"]
