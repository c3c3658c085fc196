"""Turns an agent event stream into platform-sized chat messages."""

from dataclasses import dataclass

from loguru import logger

from dmrelay.agent.base import Agent
from dmrelay.agent.events import StreamEvent
from dmrelay.gateway.base import Conversation

DEFAULT_FLUSH_THRESHOLD = 1990
DEFAULT_MESSAGE_LIMIT = 2000
DEFAULT_MAX_STEPS = 10

TOOL_ERROR_NOTICE = "Sorry, there was an error executing the tool."


class ToolNameFormatter:
    """
    Derives the name shown in "Checking ..." notices from a raw tool name.

    With a prefix configured, only tools carrying that prefix are announced
    and the prefix is stripped. Without one, every tool is announced as-is.
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def display_name(self, raw_name: str) -> str | None:
        if self.prefix not in raw_name:
            return None
        name = raw_name.replace(self.prefix, "") if self.prefix else raw_name
        return name.strip(" _-") or raw_name

    def notice(self, display_name: str) -> str:
        return f"Checking {display_name}. Please wait..."


@dataclass
class StreamSummary:
    """What one streamed response produced."""

    messages_sent: int = 0
    characters_sent: int = 0
    tool_notices: int = 0
    tool_results: int = 0
    tool_errors: int = 0
    finish_reason: str = ""


def split_point(text: str, limit: int) -> int:
    """
    Pick where to cut ``text`` so the first piece is at most ``limit`` chars.

    Prefers the end of a line in the second half of the window so chunks do
    not break mid-sentence; falls back to a hard cut.
    """
    if len(text) <= limit:
        return len(text)
    newline = text.rfind("\n", 0, limit)
    if newline >= limit // 2:
        return newline + 1
    return limit


class ResponseStreamer:
    """
    Drives one inbound message through the agent and posts the output.

    Text deltas accumulate in a buffer that is flushed whenever it grows past
    ``flush_threshold``; the remainder goes out when the stream ends. Tool
    calls produce one notice per display name per response, and tool errors
    are reported inline without stopping the stream.
    """

    def __init__(
        self,
        agent: Agent,
        flush_threshold: int = DEFAULT_FLUSH_THRESHOLD,
        message_limit: int = DEFAULT_MESSAGE_LIMIT,
        max_steps: int = DEFAULT_MAX_STEPS,
        tool_names: ToolNameFormatter | None = None,
    ):
        if flush_threshold >= message_limit:
            raise ValueError("flush_threshold must be below message_limit")
        self.agent = agent
        self.flush_threshold = flush_threshold
        self.message_limit = message_limit
        self.max_steps = max_steps
        self.tool_names = tool_names or ToolNameFormatter()

    async def stream(
        self,
        text: str,
        conversation: Conversation,
        max_steps: int | None = None,
    ) -> StreamSummary:
        """
        Stream the agent's answer to ``text`` into ``conversation``.

        Failures of the agent invocation itself propagate to the caller.
        """
        summary = StreamSummary()
        buffer = ""
        notified: set[str] = set()

        async for event in self.agent.stream(text, max_steps=max_steps or self.max_steps):
            buffer += await self._handle_event(event, conversation, notified, summary)
            while len(buffer) > self.flush_threshold:
                cut = split_point(buffer, self.flush_threshold)
                await self._flush(buffer[:cut], conversation, summary)
                buffer = buffer[cut:]

        if buffer:
            await self._flush(buffer, conversation, summary)
        return summary

    async def _handle_event(
        self,
        event: StreamEvent,
        conversation: Conversation,
        notified: set[str],
        summary: StreamSummary,
    ) -> str:
        """Apply one event; returns text to append to the buffer."""
        if event.type == "text_delta":
            return event.text

        if event.type == "tool_call":
            logger.info(f"Tool call: {event.tool_name}")
            name = self.tool_names.display_name(event.tool_name)
            if name is not None and name not in notified:
                notified.add(name)
                await conversation.send(self.tool_names.notice(name))
                summary.tool_notices += 1
        elif event.type == "tool_result":
            logger.debug(f"Tool result: {event.tool_name}")
            summary.tool_results += 1
        elif event.type == "error":
            logger.warning(f"Tool error ({event.tool_name or 'unknown'}): {event.error}")
            await conversation.send(TOOL_ERROR_NOTICE)
            summary.tool_errors += 1
        elif event.type == "finish":
            summary.finish_reason = event.finish_reason
        return ""

    async def _flush(self, chunk: str, conversation: Conversation, summary: StreamSummary) -> None:
        logger.debug(f"Flushing {len(chunk)} characters")
        await conversation.send(chunk)
        summary.messages_sent += 1
        summary.characters_sent += len(chunk)
