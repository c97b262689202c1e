"""
BobBot: discord.py bot client.

Manages the full bot lifecycle:
- Builds the shared services (runtime store, admin policy, pagination,
  tool registry, agent orchestrator) once at startup
- Loads command cogs (ChatCog, AdminCog)
- Syncs slash commands (guild-local for dev, global for production)
- Cleans up all resources on shutdown via AsyncExitStack
"""

from __future__ import annotations

from contextlib import AsyncExitStack

import discord
from discord.ext import commands

from bobbot.bot.delivery import ThoughtDelivery
from bobbot.bot.views import PageButton
from bobbot.config.logging import get_logger
from bobbot.config.settings import Settings
from bobbot.llm import AgentOrchestrator
from bobbot.llm.prompts import PromptFacts
from bobbot.services import AdminPolicy, PaginationService, ThoughtCache
from bobbot.storage import JsonStorage
from bobbot.tools import ToolRegistry
from bobbot.tools.builtin import core_tools

logger = get_logger(__name__)


class BobBot(commands.Bot):
    """
    Discord chat bot backed by a local LLM.

    Holds shared application state (orchestrator, admin policy, pagination)
    and exposes it to cogs.

    Args:
        settings: Full application settings (bot token, LLM transport, agent limits)
    """

    def __init__(self, settings: Settings) -> None:
        intents = discord.Intents.default()
        intents.message_content = True  # Required to read chat messages
        intents.members = True  # Nicknames for the system prompt
        super().__init__(
            command_prefix=settings.bot.command_prefix,
            intents=intents,
        )
        self.settings = settings
        self.storage = JsonStorage(settings.data_dir)
        self.admin_policy = AdminPolicy(self.storage, settings.bot.superuser_id)
        self.pagination = PaginationService(settings.agent.max_paged_sessions)
        self.delivery = ThoughtDelivery(
            self, self.admin_policy, settings.agent.reasoning_chunk_size
        )
        self.orchestrator: AgentOrchestrator | None = None
        self._exit_stack = AsyncExitStack()

    async def setup_hook(self) -> None:
        """
        Called after login, before connecting to the Gateway.

        Initializes all services, loads cogs, and syncs slash commands.
        """
        # --- 1. Tools ---
        registry = ToolRegistry(self.settings.agent.tool_workers)
        registry.register_all(
            core_tools(
                self.storage,
                self.pagination,
                self.admin_policy,
                page_size=self.settings.agent.page_size,
                data_dir=self.settings.data_dir,
            )
        )
        tool_adapter = await self._exit_stack.enter_async_context(registry)
        logger.info(f"Tool registry ready ({len(registry)} tools: {', '.join(registry.names)})")

        # --- 2. Orchestrator ---
        self.orchestrator = AgentOrchestrator(
            storage=self.storage,
            llm_settings=self.settings.llm,
            agent_settings=self.settings.agent,
            tool_adapter=tool_adapter,
            pagination=self.pagination,
            thoughts=ThoughtCache(self.settings.agent.thought_cache_size),
            admin_policy=self.admin_policy,
            facts_resolver=self.resolve_prompt_facts,
            data_dir=self.settings.data_dir,
        )
        runtime = self.storage.load_settings()
        logger.info(
            f"Agent orchestrator ready (url: {runtime.ai_url or 'unset'}, "
            f"model: {runtime.ai_model or 'unset'})"
        )

        # --- 3. Load cogs and page buttons ---
        from bobbot.bot.cogs.admin import AdminCog
        from bobbot.bot.cogs.chat import ChatCog
        await self.add_cog(ChatCog(self))
        await self.add_cog(AdminCog(self))
        self.add_dynamic_items(PageButton)
        logger.info("Cogs loaded")

        # --- 4. Sync slash commands ---
        try:
            if self.settings.bot.dev_guild_id:
                guild = discord.Object(id=self.settings.bot.dev_guild_id)
                self.tree.copy_global_to(guild=guild)
                await self.tree.sync(guild=guild)
                logger.info(f"Slash commands synced to dev guild {self.settings.bot.dev_guild_id}")
            else:
                await self.tree.sync()
                logger.info("Slash commands synced globally (may take up to 1 hour to propagate)")
        except discord.errors.Forbidden:
            logger.warning(
                "Could not sync slash commands (403 Forbidden). "
                "Re-invite the bot with both 'bot' and 'applications.commands' scopes. "
                "The bot will still chat in the configured channel."
            )
        except Exception as e:
            logger.warning(f"Slash command sync failed: {e}. The bot will still start.")

    async def on_ready(self) -> None:
        """Called when the bot successfully connects to Discord."""
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

    async def close(self) -> None:
        """Graceful shutdown: release the tool workers before disconnecting."""
        logger.info("Shutting down Bob...")
        await self._exit_stack.aclose()
        await super().close()

    def is_chat_channel(self, channel_id: int) -> bool:
        """True if chat replies are enabled in this channel."""
        configured = self.storage.load_settings().chat_channel_id
        return bool(configured) and configured == str(channel_id)

    def resolve_prompt_facts(
        self, caller_id: str, conversation_id: str, community_id: str | None
    ) -> PromptFacts:
        """Look up the speaker and location names from the client cache."""
        facts: dict[str, str] = {}

        user = self.get_user(int(caller_id))
        if user is not None:
            facts["user_name"] = user.name

        channel = self.get_channel(int(conversation_id))
        if channel is not None and getattr(channel, "name", None):
            facts["channel_name"] = channel.name

        if community_id:
            guild = self.get_guild(int(community_id))
            if guild is not None:
                facts["community_name"] = guild.name
                member = guild.get_member(int(caller_id))
                if member is not None:
                    if member.nick:
                        facts["user_nickname"] = member.nick
                    facts.setdefault("user_name", member.name)

        return PromptFacts(**facts)
