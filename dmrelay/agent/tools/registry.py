"""Tool registry for the agent."""

import time
from typing import Any

from loguru import logger

from dmrelay.agent.tools.base import Tool
from dmrelay.relay.errors import ToolExecutionError


class ToolRegistry:
    """Tools the agent may call, keyed by function name."""

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_definitions(self) -> list[dict[str, Any]]:
        """Get all tool definitions in OpenAI function format."""
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, params: dict[str, Any]) -> str:
        """
        Validate the parameters and run one tool.

        Args:
            name: Tool name.
            params: Arguments decoded from the model's tool call.

        Returns:
            Tool execution result as string.

        Raises:
            ToolExecutionError: If the tool is unknown, the parameters are
                invalid, or the tool itself fails.
        """
        tool = self._tools.get(name)
        if not tool:
            raise ToolExecutionError(name, f"Tool '{name}' not found")

        errors = tool.validate_params(params)
        if errors:
            raise ToolExecutionError(name, f"Invalid parameters for tool '{name}': " + "; ".join(errors))

        start = time.monotonic()
        try:
            result = await tool.execute(**params)
        except ToolExecutionError:
            raise
        except Exception as e:
            logger.warning(f"Tool {name} failed after {(time.monotonic() - start) * 1000:.0f}ms: {e}")
            raise ToolExecutionError(name, f"Error executing {name}: {e}") from e
        logger.debug(f"Tool {name} finished in {(time.monotonic() - start) * 1000:.0f}ms")
        return result
