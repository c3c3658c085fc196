from types import SimpleNamespace

import discord
import pytest

from dmrelay.config.schema import DiscordConfig
from dmrelay.gateway.base import GatewayError, HistoryEntry
from dmrelay.gateway.discord import DiscordConversation, DiscordGateway, is_direct_message

BOT_ID = 999


class _FakeClient:
    def __init__(self, start_error: Exception | None = None) -> None:
        self.handlers: dict[str, object] = {}
        self.user = SimpleNamespace(id=BOT_ID, name="relay-bot")
        self.started_with: str | None = None
        self.closed = False
        self.start_error = start_error

    def event(self, coro):
        self.handlers[coro.__name__] = coro
        return coro

    async def start(self, token: str) -> None:
        self.started_with = token
        if self.start_error is not None:
            raise self.start_error

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True


class _FakeMessage:
    def __init__(self, message_id: int, author_id: int, channel=None, content: str = "", bot: bool = False):
        self.id = message_id
        self.author = SimpleNamespace(id=author_id, bot=bot, name=f"user{author_id}")
        self.channel = channel
        self.content = content
        self.guild = None
        self.deleted = False
        self.replies: list[str] = []

    async def delete(self) -> None:
        self.deleted = True

    async def reply(self, content: str) -> None:
        self.replies.append(content)


class _FakeDMChannel:
    def __init__(self, history: list[_FakeMessage] | None = None) -> None:
        self.id = 42
        self.type = discord.ChannelType.private
        self._history = list(history or [])
        self.sent: list[str] = []
        self.history_limits: list[int] = []

    async def history(self, limit: int):
        self.history_limits.append(limit)
        for message in list(reversed(self._history))[:limit]:
            yield message

    async def send(self, content: str) -> None:
        self.sent.append(content)


def _gateway(handler=None, token: str = "token", client: _FakeClient | None = None) -> DiscordGateway:
    async def noop(msg) -> None:
        return None

    return DiscordGateway(DiscordConfig(token=token), handler or noop, client=client or _FakeClient())


def test_handlers_are_registered_on_client() -> None:
    client = _FakeClient()
    _gateway(client=client)
    assert set(client.handlers) == {"on_ready", "on_message"}


def test_direct_message_detection() -> None:
    dm = _FakeMessage(1, 7, channel=_FakeDMChannel())
    assert is_direct_message(dm)

    guild_message = _FakeMessage(2, 7, channel=_FakeDMChannel())
    guild_message.guild = SimpleNamespace(id=1)
    assert not is_direct_message(guild_message)

    group = _FakeMessage(3, 7, channel=SimpleNamespace(id=5, type=discord.ChannelType.group))
    assert not is_direct_message(group)


def test_to_inbound_maps_discord_fields() -> None:
    channel = _FakeDMChannel()
    gateway = _gateway()
    msg = gateway.to_inbound(_FakeMessage(10, 7, channel=channel, content="hello"))

    assert msg.channel == "discord"
    assert msg.sender_id == "7"
    assert msg.chat_id == "42"
    assert msg.content == "hello"
    assert msg.is_direct is True
    assert msg.sender_is_bot is False
    assert msg.conversation.self_id == str(BOT_ID)


async def test_only_human_direct_messages_are_forwarded() -> None:
    received = []

    async def handler(msg) -> None:
        received.append(msg)

    client = _FakeClient()
    _gateway(handler, client=client)
    on_message = client.handlers["on_message"]
    channel = _FakeDMChannel()

    await on_message(_FakeMessage(1, 7, channel=channel, content="hi"))
    await on_message(_FakeMessage(2, 8, channel=channel, content="beep", bot=True))
    guild_message = _FakeMessage(3, 7, channel=channel, content="in a server")
    guild_message.guild = SimpleNamespace(id=1)
    await on_message(guild_message)

    assert [m.content for m in received] == ["hi"]


async def test_conversation_reply_send_and_history() -> None:
    history = [
        _FakeMessage(1, 7),
        _FakeMessage(2, BOT_ID),
        _FakeMessage(3, 7),
        _FakeMessage(4, BOT_ID),
    ]
    channel = _FakeDMChannel(history)
    trigger = _FakeMessage(5, 7, channel=channel)
    conversation = DiscordConversation(trigger, str(BOT_ID))

    await conversation.reply("ack")
    await conversation.send("answer")
    entries = await conversation.fetch_recent(3)

    assert trigger.replies == ["ack"]
    assert channel.sent == ["answer"]
    assert channel.history_limits == [3]
    assert [e.message_id for e in entries] == ["4", "3", "2"]
    assert [e.deletable for e in entries] == [True, False, True]

    await conversation.delete(entries[0])
    assert history[3].deleted is True


async def test_delete_requires_fetched_message() -> None:
    conversation = DiscordConversation(_FakeMessage(1, 7, channel=_FakeDMChannel()), str(BOT_ID))
    with pytest.raises(ValueError):
        await conversation.delete(HistoryEntry(message_id="1", author_id=str(BOT_ID)))


async def test_start_without_token_raises() -> None:
    client = _FakeClient()
    with pytest.raises(GatewayError, match="token"):
        await _gateway(token="", client=client).start()
    assert client.started_with is None


async def test_login_failure_becomes_gateway_error() -> None:
    client = _FakeClient(start_error=discord.LoginFailure("Improper token has been passed."))
    gateway = _gateway(client=client)

    with pytest.raises(GatewayError, match="login failed"):
        await gateway.start()

    assert client.started_with == "token"
    assert gateway.is_running is False


async def test_stop_closes_client_once() -> None:
    client = _FakeClient()
    gateway = _gateway(client=client)
    await gateway.stop()
    assert client.closed is True
    await gateway.stop()
