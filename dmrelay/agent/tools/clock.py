"""Current time tool."""

import datetime as dt
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dmrelay.agent.tools.base import Tool


class CurrentTimeTool(Tool):
    """Report the current date and time, optionally in a given timezone."""

    @property
    def name(self) -> str:
        return "current_time"

    @property
    def description(self) -> str:
        return "Get the current date and time. Optionally pass an IANA timezone such as 'Europe/Paris'."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "timezone": {"type": "string", "description": "IANA timezone name, defaults to UTC"},
            },
        }

    async def execute(self, timezone: str | None = None, **kwargs: Any) -> str:
        tz_name = (timezone or "").strip() or "UTC"
        if tz_name.upper() == "UTC":
            tz: dt.tzinfo = dt.timezone.utc
        else:
            try:
                tz = ZoneInfo(tz_name)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone: {tz_name}") from None
        now = dt.datetime.now(tz)
        return f"{now.isoformat(timespec='seconds')} ({tz_name}, {now.strftime('%A')})"
