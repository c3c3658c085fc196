"""Deletion of the bot's own direct-message history."""

import asyncio

from loguru import logger

from dmrelay.gateway.base import Conversation
from dmrelay.relay.errors import PurgeError

DEFAULT_PAGE_SIZE = 100
DEFAULT_DELETE_DELAY_MS = 1000


class HistoryPurge:
    """
    Deletes every message the bot posted in a conversation.

    Pages through the most recent ``page_size`` messages at a time and pauses
    ``delete_delay_ms`` after each deletion to stay under platform rate limits.
    """

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE, delete_delay_ms: int = DEFAULT_DELETE_DELAY_MS):
        self.page_size = max(1, int(page_size))
        self.delete_delay_s = max(0, int(delete_delay_ms)) / 1000

    async def purge(self, conversation: Conversation) -> int:
        """
        Delete the bot's messages in ``conversation``.

        Returns:
            Number of messages deleted.

        Raises:
            PurgeError: If fetching or deleting fails. Nothing is retried.
        """
        deleted = 0
        try:
            while True:
                page = await conversation.fetch_recent(self.page_size)
                own = [entry for entry in page if entry.author_id == conversation.self_id]
                if not own:
                    break

                deleted_from_page = 0
                for entry in own:
                    if not entry.deletable:
                        continue
                    await conversation.delete(entry)
                    deleted += 1
                    deleted_from_page += 1
                    await asyncio.sleep(self.delete_delay_s)

                # A full page of undeletable messages would be fetched again forever.
                if len(page) < self.page_size or not deleted_from_page:
                    break
        except PurgeError:
            raise
        except Exception as e:
            logger.error(f"History purge failed after {deleted} deletions: {e}")
            raise PurgeError(f"History purge failed: {e}", deleted=deleted) from e

        logger.info(f"Deleted {deleted} bot messages")
        return deleted
