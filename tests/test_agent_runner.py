from typing import Any

from dmrelay.agent.runner import ToolCallingAgent
from dmrelay.agent.tools import ToolRegistry
from dmrelay.agent.tools.base import Tool
from dmrelay.providers.base import LLMProvider, LLMResponse, LLMStreamEvent, ToolCallRequest
from dmrelay.relay.errors import ToolExecutionError


class ScriptedProvider(LLMProvider):
    """Returns one scripted response per model call."""

    def __init__(self, responses: list[LLMResponse], chunk_size: int = 0):
        super().__init__()
        self.responses = list(responses)
        self.chunk_size = chunk_size
        self.calls: list[list[dict[str, Any]]] = []

    async def chat(self, messages, tools=None, model=None, max_tokens=4096, temperature=0.7) -> LLMResponse:
        self.calls.append([dict(m) for m in messages])
        return self.responses.pop(0)

    async def stream_chat(self, messages, tools=None, model=None, max_tokens=4096, temperature=0.7):
        if not self.chunk_size:
            async for event in super().stream_chat(messages, tools, model, max_tokens, temperature):
                yield event
            return
        response = await self.chat(messages, tools, model, max_tokens, temperature)
        content = response.content or ""
        for i in range(0, len(content), self.chunk_size):
            yield LLMStreamEvent(type="delta", delta=content[i : i + self.chunk_size])
        yield LLMStreamEvent(type="final", response=response)

    def get_default_model(self) -> str:
        return "test/model"


class LookupTool(Tool):
    def __init__(self, fail: bool = False):
        self.fail = fail

    @property
    def name(self) -> str:
        return "lookup"

    @property
    def description(self) -> str:
        return "look something up"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"q": {"type": "string"}},
            "required": ["q"],
        }

    async def execute(self, q: str, **kwargs: Any) -> str:
        if self.fail:
            raise ConnectionError("lookup backend down")
        return f"result for {q}"


def _lookup_call(call_id: str = "call_1", q: str = "weather") -> LLMResponse:
    return LLMResponse(
        content="",
        tool_calls=[ToolCallRequest(id=call_id, name="lookup", arguments={"q": q})],
        finish_reason="tool_calls",
    )


def _agent(provider: LLMProvider, tool: Tool | None = None, **kwargs) -> ToolCallingAgent:
    registry = ToolRegistry()
    if tool is not None:
        registry.register(tool)
    return ToolCallingAgent(provider, tools=registry, **kwargs)


async def test_plain_answer_streams_text_then_finishes() -> None:
    provider = ScriptedProvider([LLMResponse(content="Hello there")], chunk_size=4)
    agent = _agent(provider, system_prompt="Be brief.")

    events = [e async for e in agent.stream("hi")]

    assert [e.text for e in events if e.type == "text_delta"] == ["Hell", "o th", "ere"]
    assert events[-1].type == "finish"
    assert events[-1].finish_reason == "stop"
    assert provider.calls[0] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "hi"},
    ]


async def test_non_streaming_provider_still_emits_text() -> None:
    provider = ScriptedProvider([LLMResponse(content="whole answer")])
    events = [e async for e in _agent(provider).stream("hi")]
    assert [e.text for e in events if e.type == "text_delta"] == ["whole answer"]


async def test_tool_call_result_is_fed_back_to_model() -> None:
    provider = ScriptedProvider([_lookup_call(), LLMResponse(content="It is sunny.")])
    agent = _agent(provider, LookupTool())

    events = [e async for e in agent.stream("weather?")]

    assert [e.type for e in events] == ["tool_call", "tool_result", "text_delta", "finish"]
    assert events[0].tool_name == "lookup"
    assert events[0].arguments == {"q": "weather"}
    assert events[1].payload == "result for weather"

    second_call = provider.calls[1]
    assert second_call[-2]["role"] == "assistant"
    assert second_call[-2]["tool_calls"][0]["function"]["name"] == "lookup"
    assert second_call[-1] == {
        "role": "tool",
        "tool_call_id": "call_1",
        "name": "lookup",
        "content": "result for weather",
    }


async def test_tool_failure_becomes_error_event_and_loop_continues() -> None:
    provider = ScriptedProvider([_lookup_call(), LLMResponse(content="Sorry, no data.")])
    agent = _agent(provider, LookupTool(fail=True))

    events = [e async for e in agent.stream("weather?")]

    assert [e.type for e in events] == ["tool_call", "error", "text_delta", "finish"]
    assert isinstance(events[1].error, ToolExecutionError)
    assert events[1].tool_name == "lookup"
    assert provider.calls[1][-1]["content"].startswith("Error: ")


async def test_loop_stops_after_max_steps() -> None:
    provider = ScriptedProvider([_lookup_call(f"call_{i}") for i in range(3)])
    agent = _agent(provider, LookupTool())

    events = [e async for e in agent.stream("loop forever", max_steps=2)]

    assert len(provider.calls) == 2
    assert [e.type for e in events].count("tool_call") == 2
    assert events[-1].type == "finish"
    assert events[-1].finish_reason == "max_steps"


async def test_non_streaming_mode_uses_chat() -> None:
    provider = ScriptedProvider([LLMResponse(content="plain")], chunk_size=1)
    agent = _agent(provider, stream_responses=False)

    events = [e async for e in agent.stream("hi")]

    assert [e.text for e in events if e.type == "text_delta"] == ["plain"]
    assert agent.model == "test/model"
