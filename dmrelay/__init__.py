"""dmrelay - relay Discord direct messages to a tool-calling agent."""

__version__ = "0.1.0"
__logo__ = "📨"
