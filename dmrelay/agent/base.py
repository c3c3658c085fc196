"""Conversational agent interface."""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from dmrelay.agent.events import StreamEvent


class Agent(ABC):
    """
    Abstract base class for agents the relay can drive.

    ``stream`` returns a lazy, ordered, finite, single-pass sequence of
    :class:`StreamEvent`. Per-event problems are reported as ``error`` events;
    failing to start or losing the upstream connection raises instead.
    """

    @abstractmethod
    def stream(self, text: str, *, max_steps: int = 10) -> AsyncIterator[StreamEvent]:
        """
        Run the agent on one user message.

        Args:
            text: Raw user text.
            max_steps: Upper bound on model calls (reasoning/tool steps).
        """
