"""Chat gateway module for dmrelay."""

from dmrelay.gateway.base import BaseGateway, Conversation, GatewayError, HistoryEntry, InboundMessage

__all__ = ["BaseGateway", "Conversation", "GatewayError", "HistoryEntry", "InboundMessage"]
