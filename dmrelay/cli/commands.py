"""CLI commands for dmrelay."""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel

from dmrelay import __logo__, __version__
from dmrelay.config.loader import get_config_path, load_config, save_config
from dmrelay.config.schema import Config, LoggingConfig
from dmrelay.gateway.base import Conversation, GatewayError, HistoryEntry, InboundMessage

app = typer.Typer(
    name="dmrelay",
    help=f"{__logo__} dmrelay - Discord DM relay for a tool-calling agent",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} dmrelay v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """dmrelay - Discord DM relay for a tool-calling agent."""
    pass


def _configure_logging(settings: LoggingConfig, verbose: bool = False) -> None:
    logger.remove()
    level = "DEBUG" if verbose else settings.level
    logger.add(sys.stderr, level=level)
    if settings.file:
        log_path = Path(settings.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=level,
            rotation="1 day",
            retention=f"{settings.retention_days} days",
            encoding="utf-8",
        )


def _load(config_path: Path | None) -> Config:
    return load_config(config_path.expanduser() if config_path else None)


# ============================================================================
# Setup
# ============================================================================


@app.command()
def init(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file to create"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
):
    """Write a default configuration file."""
    path = (config_path or get_config_path()).expanduser()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)
    save_config(Config(), path)
    console.print(f"[green]✓[/green] Wrote default config to {path}")
    console.print("Set discord.token (or DISCORD_BOT_TOKEN) and provider.apiKey before running.")


# ============================================================================
# Gateway
# ============================================================================


@app.command()
def run(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Connect to Discord and relay direct messages to the agent."""
    from dmrelay.gateway.discord import DiscordGateway
    from dmrelay.relay.service import RelayService

    config = _load(config_path)
    _configure_logging(config.logging, verbose=verbose)

    service = RelayService(config)
    service.attach(DiscordGateway(config.discord, service.handle))

    console.print(f"{__logo__} Starting dmrelay (model: {config.agent.model})")
    try:
        asyncio.run(service.run())
    except GatewayError as e:
        logger.error(f"Failed to start bot: {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\nShutting down...")


# ============================================================================
# Local testing
# ============================================================================


class ConsoleConversation(Conversation):
    """Prints outbound messages to the terminal instead of a chat platform."""

    def __init__(self, out: Console):
        self.out = out
        self.sent: list[str] = []

    @property
    def self_id(self) -> str:
        return "dmrelay"

    async def reply(self, content: str) -> None:
        self.sent.append(content)
        self.out.print(Panel(content, title="reply", border_style="cyan"))

    async def send(self, content: str) -> None:
        self.sent.append(content)
        self.out.print(Panel(content, title=f"message {len(self.sent)}", border_style="green"))

    async def fetch_recent(self, limit: int) -> list[HistoryEntry]:
        return []

    async def delete(self, entry: HistoryEntry) -> None:
        return None


@app.command()
def ask(
    text: str = typer.Argument(..., help="Message to send"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Send one message through the relay and print the chat messages it produces."""
    from dmrelay.relay.service import RelayService

    config = _load(config_path)
    _configure_logging(config.logging, verbose=verbose)
    service = RelayService(config)
    msg = InboundMessage(
        channel="cli",
        sender_id="cli-user",
        chat_id="cli",
        content=text,
        conversation=ConsoleConversation(console),
    )
    outcome = asyncio.run(service.handle(msg))
    console.print(f"[dim]outcome: {outcome}[/dim]")
    if outcome in ("failed", "rate_limited", "too_long"):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
