"""Web fetch tool."""

from typing import Any
from urllib.parse import urlparse

import html2text
import httpx

from dmrelay.agent.tools.base import Tool

USER_AGENT = "Mozilla/5.0 (compatible; dmrelay/0.1)"


def html_to_text(markup: str) -> str:
    """Render an HTML document as readable markdown-flavoured text."""
    converter = html2text.HTML2Text()
    converter.ignore_images = True
    converter.body_width = 0
    return converter.handle(markup).strip()


class WebFetchTool(Tool):
    """Fetch a URL and return its readable text."""

    def __init__(
        self,
        max_chars: int = 20_000,
        timeout_s: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.max_chars = max_chars
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def name(self) -> str:
        return "web_fetch"

    @property
    def description(self) -> str:
        return "Fetch a web page (http or https) and return its text content."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string", "minLength": 8, "description": "Absolute http(s) URL"},
                "max_chars": {
                    "type": "integer",
                    "minimum": 100,
                    "description": "Truncate the result to this many characters",
                },
            },
            "required": ["url"],
        }

    async def execute(self, url: str, max_chars: int | None = None, **kwargs: Any) -> str:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Unsupported URL: {url}")

        limit = min(max_chars or self.max_chars, self.max_chars)
        async with httpx.AsyncClient(
            timeout=self.timeout_s,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        ) as client:
            response = await client.get(url)
            response.raise_for_status()

        content_type = response.headers.get("content-type", "")
        text = html_to_text(response.text) if "html" in content_type else response.text
        if len(text) > limit:
            text = text[:limit] + f"\n... (truncated, {len(text) - limit} more chars)"
        return f"URL: {response.url}\nStatus: {response.status_code}\n\n{text}"
