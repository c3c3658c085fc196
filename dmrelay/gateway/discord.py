"""Discord gateway implementation using discord.py."""

from typing import Any

import discord
from loguru import logger

from dmrelay.config.schema import DiscordConfig
from dmrelay.gateway.base import BaseGateway, Conversation, GatewayError, HistoryEntry, InboundMessage, MessageHandler


class DiscordConversation(Conversation):
    """A Discord DM channel, anchored on the message that started the exchange."""

    def __init__(self, message: Any, bot_user_id: str):
        self._message = message
        self._channel = message.channel
        self._bot_user_id = bot_user_id

    @property
    def self_id(self) -> str:
        return self._bot_user_id

    async def reply(self, content: str) -> None:
        await self._message.reply(content)

    async def send(self, content: str) -> None:
        await self._channel.send(content)

    async def fetch_recent(self, limit: int) -> list[HistoryEntry]:
        entries: list[HistoryEntry] = []
        async for message in self._channel.history(limit=limit):
            author_id = str(message.author.id)
            entries.append(
                HistoryEntry(
                    message_id=str(message.id),
                    author_id=author_id,
                    # In a DM the bot can only delete what it posted itself.
                    deletable=author_id == self._bot_user_id,
                    raw=message,
                )
            )
        return entries

    async def delete(self, entry: HistoryEntry) -> None:
        if entry.raw is None:
            raise ValueError(f"Message {entry.message_id} was not fetched from Discord")
        await entry.raw.delete()


def is_direct_message(message: Any) -> bool:
    """Check whether a discord message arrived over a one-to-one DM channel."""
    if getattr(message, "guild", None) is not None:
        return False
    return getattr(message.channel, "type", None) == discord.ChannelType.private


class DiscordGateway(BaseGateway):
    """
    Discord gateway over the bot websocket.

    Only the intents needed for direct messages are requested.
    """

    name = "discord"

    def __init__(self, config: DiscordConfig, on_message: MessageHandler, client: discord.Client | None = None):
        super().__init__(config, on_message)
        self.config: DiscordConfig = config
        self._client = client or discord.Client(intents=self._build_intents())
        self._register_events()

    @staticmethod
    def _build_intents() -> discord.Intents:
        intents = discord.Intents.none()
        intents.dm_messages = True
        intents.message_content = True
        return intents

    def _register_events(self) -> None:
        client = self._client

        @client.event
        async def on_ready() -> None:
            logger.info(f"Logged in to Discord as {client.user} (ID: {client.user.id})")

        @client.event
        async def on_message(message: discord.Message) -> None:
            await self._on_message(message)

    @property
    def bot_user_id(self) -> str:
        user = self._client.user
        return str(user.id) if user else ""

    async def start(self) -> None:
        """Log in and process events until the client is closed."""
        if not self.config.token:
            raise GatewayError("Discord bot token not configured")

        self._running = True
        logger.info("Logging in to Discord...")
        try:
            await self._client.start(self.config.token)
        except discord.LoginFailure as e:
            raise GatewayError(f"Discord login failed: {e}") from e
        except discord.PrivilegedIntentsRequired as e:
            raise GatewayError(
                "Discord rejected the message content intent; enable it in the developer portal"
            ) from e
        finally:
            self._running = False

    async def stop(self) -> None:
        """Close the Discord connection."""
        self._running = False
        if not self._client.is_closed():
            logger.info("Stopping Discord client...")
            await self._client.close()

    def to_inbound(self, message: Any) -> InboundMessage:
        """Convert a discord message into an inbound relay message."""
        author = message.author
        return InboundMessage(
            channel=self.name,
            sender_id=str(author.id),
            chat_id=str(message.channel.id),
            content=message.content or "",
            sender_is_bot=bool(getattr(author, "bot", False)),
            is_direct=is_direct_message(message),
            conversation=DiscordConversation(message, self.bot_user_id),
        )

    async def _on_message(self, message: Any) -> None:
        msg = self.to_inbound(message)
        if msg.sender_is_bot or not msg.is_direct:
            return
        logger.debug(f"Discord DM from {msg.sender_id}: {msg.content[:50]}")
        await self._handle_message(msg)
