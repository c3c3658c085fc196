"""Base gateway interface for chat platforms."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable


class GatewayError(Exception):
    """The gateway could not connect or log in."""


@dataclass
class HistoryEntry:
    """A message previously posted in a conversation."""

    message_id: str
    author_id: str
    deletable: bool = True
    raw: Any = None  # Platform message object, used for deletion


class Conversation(ABC):
    """
    Handle on a single direct-message conversation.

    The relay only talks to the platform through this interface, so the
    router and streamer can be driven by any gateway (or a fake in tests).
    """

    @property
    @abstractmethod
    def self_id(self) -> str:
        """Identifier of the bot account in this conversation."""

    @abstractmethod
    async def reply(self, content: str) -> None:
        """Reply to the message that started the current exchange."""

    @abstractmethod
    async def send(self, content: str) -> None:
        """Post a plain message into the conversation."""

    @abstractmethod
    async def fetch_recent(self, limit: int) -> list[HistoryEntry]:
        """Fetch up to ``limit`` messages, most recent first."""

    @abstractmethod
    async def delete(self, entry: HistoryEntry) -> None:
        """Delete a previously fetched message."""


@dataclass
class InboundMessage:
    """Message received from a chat gateway."""

    channel: str  # gateway name, e.g. "discord"
    sender_id: str
    chat_id: str
    content: str
    sender_is_bot: bool = False
    is_direct: bool = True
    conversation: Conversation | None = None


MessageHandler = Callable[[InboundMessage], Awaitable[Any]]


class BaseGateway(ABC):
    """
    Abstract base class for chat gateway implementations.

    A gateway owns the platform connection and hands every inbound message
    to a single handler coroutine.
    """

    name: str = "base"

    def __init__(self, config: Any, on_message: MessageHandler):
        """
        Initialize the gateway.

        Args:
            config: Gateway-specific configuration.
            on_message: Coroutine invoked once per inbound message.
        """
        self.config = config
        self.on_message = on_message
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """
        Connect to the platform and dispatch messages until stopped.

        Raises:
            GatewayError: If the connection or login fails.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Disconnect and release resources."""

    async def _handle_message(self, msg: InboundMessage) -> None:
        """Forward a converted inbound message to the handler."""
        await self.on_message(msg)

    @property
    def is_running(self) -> bool:
        """Check if the gateway is running."""
        return self._running
