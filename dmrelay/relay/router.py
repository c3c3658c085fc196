"""Per-message entry point of the relay."""

from typing import Literal

from loguru import logger

from dmrelay.gateway.base import Conversation, InboundMessage
from dmrelay.relay.cooldown import CooldownTracker, now_ms
from dmrelay.relay.errors import (
    CooldownActiveError,
    MessageTooLongError,
    classify_error,
)
from dmrelay.relay.purge import HistoryPurge
from dmrelay.relay.streamer import ResponseStreamer

DEFAULT_MAX_MESSAGE_LENGTH = 2000
CLEAR_COMMAND = "!cleardm"

CLEAR_ACK = "Deleting my messages..."
RATE_LIMIT_NOTICE = (
    "Sorry, the request was too large for me to process. Please try breaking it down "
    "into smaller parts or wait a moment before trying again."
)
GENERIC_ERROR_NOTICE = "Sorry, I encountered an error while processing your request. Please try again later."

RouteOutcome = Literal[
    "ignored",
    "too_long",
    "cooldown",
    "purged",
    "streamed",
    "rate_limited",
    "failed",
]


def too_long_notice(length: int, limit: int) -> str:
    return (
        f"Sorry, your message is too long ({length} characters). "
        f"Please keep it under {limit} characters."
    )


def cooldown_notice(remaining_seconds: int) -> str:
    return f"Please wait {remaining_seconds} seconds before sending another message."


class MessageRouter:
    """
    Handles every inbound direct message exactly once.

    Order of checks: bot/non-direct filter, length, cooldown, the clear
    command, then the agent stream. The cooldown is armed before the agent
    runs and released again if anything fails. ``handle`` never raises.
    """

    def __init__(
        self,
        streamer: ResponseStreamer,
        cooldowns: CooldownTracker,
        purge: HistoryPurge,
        max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
        clear_command: str = CLEAR_COMMAND,
    ):
        self.streamer = streamer
        self.cooldowns = cooldowns
        self.purge = purge
        self.max_message_length = max_message_length
        self.clear_command = clear_command

    async def handle(self, msg: InboundMessage) -> RouteOutcome:
        """Route one inbound message and report how it ended."""
        if msg.sender_is_bot or not msg.is_direct or msg.conversation is None:
            return "ignored"

        conversation = msg.conversation
        preview = msg.content[:80] + "..." if len(msg.content) > 80 else msg.content
        logger.info(f"Message from {msg.channel}:{msg.sender_id} (chat {msg.chat_id}): {preview}")

        try:
            self._validate(msg)
        except MessageTooLongError as e:
            logger.info(f"Rejected message from {msg.sender_id}: {e}")
            return await self._notify(conversation, too_long_notice(e.length, e.limit), "too_long", reply=True)

        now = now_ms()
        try:
            self._check_cooldown(msg.sender_id, now)
        except CooldownActiveError as e:
            logger.info(f"Cooldown active for {msg.sender_id} ({e.remaining_seconds}s left)")
            return await self._notify(conversation, cooldown_notice(e.remaining_seconds), "cooldown", reply=True)

        if msg.content == self.clear_command:
            return await self._clear_history(msg, conversation)

        try:
            self.cooldowns.arm(msg.sender_id, now)
            summary = await self.streamer.stream(msg.content, conversation)
        except Exception as e:
            return await self._fail(msg, conversation, e)

        logger.info(
            f"Response to {msg.channel}:{msg.sender_id}: {summary.messages_sent} messages, "
            f"{summary.characters_sent} chars, {summary.tool_notices} tool notices"
        )
        return "streamed"

    def _validate(self, msg: InboundMessage) -> None:
        length = len(msg.content)
        if length > self.max_message_length:
            raise MessageTooLongError(length, self.max_message_length)

    def _check_cooldown(self, user_id: str, now: int) -> None:
        check = self.cooldowns.check(user_id, now)
        if not check.allowed:
            raise CooldownActiveError(user_id, check.remaining_seconds)

    async def _clear_history(self, msg: InboundMessage, conversation: Conversation) -> RouteOutcome:
        try:
            await conversation.reply(CLEAR_ACK)
            deleted = await self.purge.purge(conversation)
        except Exception as e:
            return await self._fail(msg, conversation, e)
        logger.info(f"Cleared {deleted} messages for {msg.sender_id}")
        return "purged"

    async def _fail(self, msg: InboundMessage, conversation: Conversation, error: Exception) -> RouteOutcome:
        self.cooldowns.release(msg.sender_id)
        if classify_error(error) == "rate_limit":
            logger.warning(f"Upstream rate limit for {msg.sender_id}: {error}")
            return await self._notify(conversation, RATE_LIMIT_NOTICE, "rate_limited")
        logger.opt(exception=error).error(f"Error processing message from {msg.sender_id}: {error}")
        return await self._notify(conversation, GENERIC_ERROR_NOTICE, "failed")

    async def _notify(
        self,
        conversation: Conversation,
        content: str,
        outcome: RouteOutcome,
        reply: bool = False,
    ) -> RouteOutcome:
        try:
            if reply:
                await conversation.reply(content)
            else:
                await conversation.send(content)
        except Exception as e:
            logger.error(f"Failed to deliver notice: {e}")
        return outcome
