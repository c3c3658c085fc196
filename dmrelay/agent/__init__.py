"""Agent core module for dmrelay."""

from dmrelay.agent.base import Agent
from dmrelay.agent.events import StreamEvent
from dmrelay.agent.runner import ToolCallingAgent

__all__ = ["Agent", "StreamEvent", "ToolCallingAgent"]
