"""Chat completions through LiteLLM."""

import json
from typing import Any, AsyncIterator

import litellm
from litellm import acompletion

from dmrelay.providers.base import LLMProvider, LLMResponse, LLMStreamEvent, ToolCallRequest


def _field(obj: Any, key: str) -> Any:
    """Read a key from a LiteLLM object or a plain dict chunk."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


class LiteLLMProvider(LLMProvider):
    """
    Provider for any model LiteLLM can route to (``openai/...``,
    ``anthropic/...``, OpenRouter and so on).

    Credentials are passed per request rather than through environment
    variables. LiteLLM exceptions propagate unchanged.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "openai/gpt-4o-mini",
        extra_headers: dict[str, str] | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.extra_headers = extra_headers or {}
        # OpenRouter keys start with sk-or-; models then need the openrouter/ route
        self.is_openrouter = bool(
            (api_key and api_key.startswith("sk-or-")) or (api_base and "openrouter" in api_base)
        )
        litellm.suppress_debug_info = True

    def get_default_model(self) -> str:
        return self.default_model

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        response = await acompletion(**self._request(messages, tools, model, max_tokens, temperature))
        choice = response.choices[0]
        calls = [
            ToolCallRequest(
                id=tc.id,
                name=tc.function.name,
                arguments=self._parse_tool_arguments(tc.function.arguments),
            )
            for tc in (choice.message.tool_calls or [])
        ]
        return LLMResponse(
            content=choice.message.content,
            tool_calls=calls,
            finish_reason=choice.finish_reason or "stop",
        )

    async def stream_chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> AsyncIterator[LLMStreamEvent]:
        """Yield text deltas as they arrive, then the assembled response."""
        request = self._request(messages, tools, model, max_tokens, temperature)
        request["stream"] = True
        stream = await acompletion(**request)

        text: list[str] = []
        partial_calls: dict[int, dict[str, str]] = {}
        finish_reason = "stop"

        async for chunk in stream:
            choices = _field(chunk, "choices") or []
            if not choices:
                continue
            choice = choices[0]
            delta = _field(choice, "delta")
            content = _field(delta, "content") if delta is not None else None
            if content:
                text.append(content)
                yield LLMStreamEvent(type="delta", delta=content)
            if delta is not None:
                self._merge_tool_call_deltas(_field(delta, "tool_calls") or [], partial_calls)
            finish_reason = _field(choice, "finish_reason") or finish_reason

        yield LLMStreamEvent(
            type="final",
            response=LLMResponse(
                content="".join(text),
                tool_calls=self._finish_tool_calls(partial_calls),
                finish_reason=finish_reason,
            ),
        )

    def _request(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        model: str | None,
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        model_name = model or self.default_model
        if self.is_openrouter and not model_name.startswith("openrouter/"):
            model_name = f"openrouter/{model_name}"

        request: dict[str, Any] = {
            "model": model_name,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if self.api_key:
            request["api_key"] = self.api_key
        if self.api_base:
            request["api_base"] = self.api_base
        if self.extra_headers:
            request["extra_headers"] = self.extra_headers
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"
        return request

    @staticmethod
    def _merge_tool_call_deltas(deltas: list[Any], partial_calls: dict[int, dict[str, str]]) -> None:
        """Streamed tool calls arrive in pieces keyed by index; glue them together."""
        for tc in deltas:
            index = _field(tc, "index") or 0
            call = partial_calls.setdefault(index, {"id": "", "name": "", "arguments": ""})
            call["id"] = _field(tc, "id") or call["id"]
            function = _field(tc, "function")
            if function is None:
                continue
            call["name"] += _field(function, "name") or ""
            call["arguments"] += _field(function, "arguments") or ""

    def _finish_tool_calls(self, partial_calls: dict[int, dict[str, str]]) -> list[ToolCallRequest]:
        return [
            ToolCallRequest(
                id=call["id"] or f"tool_{index}",
                name=call["name"],
                arguments=self._parse_tool_arguments(call["arguments"]),
            )
            for index, call in sorted(partial_calls.items())
            if call["name"]
        ]

    @staticmethod
    def _parse_tool_arguments(raw: Any) -> dict[str, Any]:
        if isinstance(raw, dict):
            return raw
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {"raw": raw}
        return parsed if isinstance(parsed, dict) else {"value": parsed}
