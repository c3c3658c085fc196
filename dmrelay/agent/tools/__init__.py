"""Agent tools module."""

from dmrelay.agent.tools.base import Tool
from dmrelay.agent.tools.clock import CurrentTimeTool
from dmrelay.agent.tools.registry import ToolRegistry
from dmrelay.agent.tools.web import WebFetchTool

__all__ = ["Tool", "ToolRegistry", "CurrentTimeTool", "WebFetchTool"]
