"""Wiring of the relay pipeline from configuration."""

from loguru import logger

from dmrelay.agent.base import Agent
from dmrelay.agent.runner import ToolCallingAgent
from dmrelay.agent.tools import CurrentTimeTool, ToolRegistry, WebFetchTool
from dmrelay.config.schema import Config
from dmrelay.gateway.base import BaseGateway, InboundMessage
from dmrelay.providers.base import LLMProvider
from dmrelay.providers.litellm_provider import LiteLLMProvider
from dmrelay.relay.cooldown import CooldownSweeper, CooldownTracker
from dmrelay.relay.purge import HistoryPurge
from dmrelay.relay.router import MessageRouter, RouteOutcome
from dmrelay.relay.streamer import ResponseStreamer, ToolNameFormatter


def build_provider(config: Config) -> LLMProvider:
    return LiteLLMProvider(
        api_key=config.provider.api_key or None,
        api_base=config.provider.api_base,
        default_model=config.agent.model,
        extra_headers=config.provider.extra_headers,
    )


def build_tools(config: Config) -> ToolRegistry:
    registry = ToolRegistry()
    if config.tools.web_fetch.enabled:
        registry.register(
            WebFetchTool(
                max_chars=config.tools.web_fetch.max_chars,
                timeout_s=config.tools.web_fetch.timeout_s,
            )
        )
    if config.tools.current_time:
        registry.register(CurrentTimeTool())
    logger.info(f"Agent tools: {', '.join(registry.tool_names) or 'none'}")
    return registry


def build_agent(config: Config, provider: LLMProvider | None = None) -> ToolCallingAgent:
    return ToolCallingAgent(
        provider=provider or build_provider(config),
        tools=build_tools(config),
        model=config.agent.model,
        system_prompt=config.agent.system_prompt,
        max_tokens=config.agent.max_tokens,
        temperature=config.agent.temperature,
        stream_responses=config.agent.stream,
    )


def build_streamer(config: Config, agent: Agent) -> ResponseStreamer:
    return ResponseStreamer(
        agent,
        flush_threshold=config.relay.flush_threshold,
        message_limit=config.relay.platform_message_limit,
        max_steps=config.agent.max_steps,
        tool_names=ToolNameFormatter(config.relay.tool_name_prefix),
    )


class RelayService:
    """
    Runs the relay: one gateway, one router, and the cooldown sweeper.

    The gateway calls :meth:`handle` for every inbound message; the sweeper
    runs alongside for as long as the gateway is connected.
    """

    def __init__(self, config: Config, agent: Agent | None = None):
        self.config = config
        relay = config.relay
        self.agent = agent or build_agent(config)
        self.cooldowns = CooldownTracker(cooldown_ms=relay.cooldown_ms)
        self.sweeper = CooldownSweeper(self.cooldowns, interval_ms=relay.cooldown_sweep_interval_ms)
        self.router = MessageRouter(
            streamer=build_streamer(config, self.agent),
            cooldowns=self.cooldowns,
            purge=HistoryPurge(page_size=relay.purge_page_size, delete_delay_ms=relay.purge_delete_delay_ms),
            max_message_length=relay.max_message_length,
            clear_command=relay.clear_command,
        )
        self.gateway: BaseGateway | None = None

    async def handle(self, msg: InboundMessage) -> RouteOutcome:
        return await self.router.handle(msg)

    def attach(self, gateway: BaseGateway) -> BaseGateway:
        self.gateway = gateway
        return gateway

    async def run(self) -> None:
        """Start the sweeper and block on the gateway until it disconnects."""
        if self.gateway is None:
            raise RuntimeError("No gateway attached")
        await self.sweeper.start()
        try:
            await self.gateway.start()
        finally:
            self.sweeper.stop()
            await self.gateway.stop()
            logger.info("Relay stopped")
