"""Tool-calling agent that streams its output as relay events."""

import json
from typing import Any, AsyncIterator

from loguru import logger

from dmrelay.agent.base import Agent
from dmrelay.agent.events import StreamEvent, finish, stream_error, text_delta, tool_call, tool_result
from dmrelay.agent.tools.registry import ToolRegistry
from dmrelay.providers.base import LLMProvider, LLMResponse
from dmrelay.relay.errors import ToolExecutionError


class ToolCallingAgent(Agent):
    """
    Runs an LLM + tool-call loop for a single user message.

    Each step is one model call. Text is forwarded as it streams in; tool
    calls are executed in order and their results fed back to the model.
    The loop ends when the model answers without tool calls or after
    ``max_steps`` calls. No history is kept between messages.
    """

    def __init__(
        self,
        provider: LLMProvider,
        tools: ToolRegistry | None = None,
        model: str | None = None,
        system_prompt: str = "",
        max_tokens: int = 4096,
        temperature: float = 0.7,
        stream_responses: bool = True,
    ):
        self.provider = provider
        self.tools = tools or ToolRegistry()
        self.model = model or provider.get_default_model()
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.stream_responses = stream_responses

    def build_messages(self, text: str) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": text})
        return messages

    async def stream(self, text: str, *, max_steps: int = 10) -> AsyncIterator[StreamEvent]:
        messages = self.build_messages(text)
        tools = self.tools.get_definitions() or None

        for step in range(1, max(1, max_steps) + 1):
            response: LLMResponse | None = None
            async for event in self._call_model(messages, tools):
                if isinstance(event, LLMResponse):
                    response = event
                else:
                    yield event

            if response is None:
                raise RuntimeError("Provider returned no final response")

            if not response.has_tool_calls:
                logger.debug(f"Agent finished after {step} step(s): {response.finish_reason}")
                yield finish(response.finish_reason or "stop")
                return

            messages.append(
                {
                    "role": "assistant",
                    "content": response.content or "",
                    "tool_calls": [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {
                                "name": tc.name,
                                "arguments": json.dumps(tc.arguments, ensure_ascii=False),
                            },
                        }
                        for tc in response.tool_calls
                    ],
                }
            )

            for tc in response.tool_calls:
                args_preview = json.dumps(tc.arguments, ensure_ascii=False)
                logger.info(f"Agent tool call: {tc.name}({args_preview[:200]})")
                yield tool_call(tc.name, tc.arguments)
                try:
                    result = await self.tools.execute(tc.name, tc.arguments)
                except ToolExecutionError as e:
                    yield stream_error(e, tool_name=tc.name)
                    result = f"Error: {e}"
                else:
                    yield tool_result(tc.name, result)
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": tc.id,
                        "name": tc.name,
                        "content": result,
                    }
                )

        logger.warning(f"Agent stopped after reaching max_steps={max_steps}")
        yield finish("max_steps")

    async def _call_model(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
    ) -> AsyncIterator[StreamEvent | LLMResponse]:
        """Yield text deltas for one model call, then its final response."""
        if not self.stream_responses:
            response = await self.provider.chat(
                messages=messages,
                tools=tools,
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            if response.content:
                yield text_delta(response.content)
            yield response
            return

        final: LLMResponse | None = None
        streamed = False
        async for event in self.provider.stream_chat(
            messages=messages,
            tools=tools,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        ):
            if event.type == "delta" and event.delta:
                streamed = True
                yield text_delta(event.delta)
            elif event.type == "final" and event.response:
                final = event.response

        if final is not None:
            # Providers without real streaming only deliver the final response.
            if not streamed and final.content:
                yield text_delta(final.content)
            yield final
