"""Message relay pipeline for dmrelay."""

from dmrelay.relay.cooldown import CooldownCheck, CooldownSweeper, CooldownTracker
from dmrelay.relay.purge import HistoryPurge
from dmrelay.relay.router import MessageRouter
from dmrelay.relay.streamer import ResponseStreamer, ToolNameFormatter

__all__ = [
    "CooldownCheck",
    "CooldownSweeper",
    "CooldownTracker",
    "HistoryPurge",
    "MessageRouter",
    "ResponseStreamer",
    "ToolNameFormatter",
]
