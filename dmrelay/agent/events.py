"""Stream events emitted by the conversational agent."""

from dataclasses import dataclass, field
from typing import Any, Literal

StreamEventType = Literal["text_delta", "tool_call", "tool_result", "error", "finish"]


@dataclass(frozen=True)
class StreamEvent:
    """One incremental unit of agent output."""

    type: StreamEventType
    text: str = ""  # text_delta
    tool_name: str = ""  # tool_call / tool_result / error
    arguments: dict[str, Any] = field(default_factory=dict)  # tool_call
    payload: Any = None  # tool_result
    error: BaseException | None = None  # error
    finish_reason: str = ""  # finish


def text_delta(text: str) -> StreamEvent:
    return StreamEvent(type="text_delta", text=text)


def tool_call(tool_name: str, arguments: dict[str, Any] | None = None) -> StreamEvent:
    return StreamEvent(type="tool_call", tool_name=tool_name, arguments=dict(arguments or {}))


def tool_result(tool_name: str, payload: Any) -> StreamEvent:
    return StreamEvent(type="tool_result", tool_name=tool_name, payload=payload)


def stream_error(error: BaseException, tool_name: str = "") -> StreamEvent:
    return StreamEvent(type="error", error=error, tool_name=tool_name)


def finish(reason: str = "stop") -> StreamEvent:
    return StreamEvent(type="finish", finish_reason=reason)
