"""
AdminCog: the /ai slash group and the "Show Thoughts" context menu.

Every /ai command is admin-only, and changing the admin list is reserved for
the superuser. Changes go through the runtime settings store (or the
personality file), so the next generation call picks them up without a
restart.
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from bobbot.config.logging import get_logger
from bobbot.llm.prompts import PERSONALITY_FILE, save_personality

logger = get_logger(__name__)

NOT_ADMIN_MESSAGE = "You don't have permission to change my settings, mate."
NO_THOUGHTS_MESSAGE = "I don't have any thoughts saved for that message that you're allowed to see."
THOUGHTS_SENT_MESSAGE = "I've sent my thoughts to your DMs."
DM_FAILED_MESSAGE = "I couldn't DM you. Check that your DMs are open."
NOT_SUPERUSER_MESSAGE = "Only the superuser can change who the admins are."


def _field(text: str, limit: int = 1024) -> str:
    text = text or "(empty)"
    return text if len(text) <= limit else text[: limit - 3] + "..."


class AdminCog(commands.GroupCog, group_name="ai", group_description="Configure Bob's AI"):
    """Operator commands for the AI endpoint, model, personality, chat channel, admins and reasoning."""

    def __init__(self, bot) -> None:
        self.bot = bot
        self.show_thoughts_menu = app_commands.ContextMenu(
            name="Show Thoughts", callback=self.show_thoughts
        )
        self.bot.tree.add_command(self.show_thoughts_menu)

    async def cog_unload(self) -> None:
        self.bot.tree.remove_command(
            self.show_thoughts_menu.name, type=self.show_thoughts_menu.type
        )

    async def _require_admin(self, interaction: discord.Interaction) -> bool:
        if self.bot.admin_policy.is_admin(str(interaction.user.id)):
            return True
        logger.info(f"Rejected /ai command from non-admin {interaction.user.id}")
        await interaction.response.send_message(NOT_ADMIN_MESSAGE, ephemeral=True)
        return False

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @app_commands.command(name="url", description="Set the AI endpoint URL")
    @app_commands.describe(url="Base URL of the OpenAI-compatible server")
    async def url(self, interaction: discord.Interaction, url: str) -> None:
        if not await self._require_admin(interaction):
            return
        url = url.strip()
        self.bot.storage.update_settings(lambda s: s.with_ai_url(url))
        logger.info(f"AI URL set to {url} by {interaction.user.id}")
        await interaction.response.send_message(f"AI URL updated to `{url}`.", ephemeral=True)

    @app_commands.command(name="model", description="Set the AI model name")
    @app_commands.describe(model="Model name as the server knows it")
    async def model(self, interaction: discord.Interaction, model: str) -> None:
        if not await self._require_admin(interaction):
            return
        model = model.strip()
        self.bot.storage.update_settings(lambda s: s.with_ai_model(model))
        logger.info(f"AI model set to {model} by {interaction.user.id}")
        await interaction.response.send_message(f"AI model updated to `{model}`.", ephemeral=True)

    @app_commands.command(name="channel", description="Set the channel Bob chats in")
    @app_commands.describe(channel="Channel where Bob answers messages")
    async def channel(self, interaction: discord.Interaction, channel: discord.TextChannel) -> None:
        if not await self._require_admin(interaction):
            return
        self.bot.storage.update_settings(lambda s: s.with_chat_channel_id(str(channel.id)))
        logger.info(f"Chat channel set to {channel.id} by {interaction.user.id}")
        await interaction.response.send_message(
            f"I'll chat in {channel.mention} from now on.", ephemeral=True
        )

    @app_commands.command(name="thoughts", description="Toggle receiving AI reasoning by DM")
    async def thoughts(self, interaction: discord.Interaction) -> None:
        if not await self._require_admin(interaction):
            return
        enabled = self.bot.admin_policy.toggle_thoughts(str(interaction.user.id))
        message = (
            "You'll now receive my thinking logs by DM."
            if enabled else
            "You'll no longer receive my thinking logs."
        )
        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="personality", description="Upload a personality.txt for Bob")
    @app_commands.describe(file="A UTF-8 text file named personality.txt")
    async def personality(self, interaction: discord.Interaction, file: discord.Attachment) -> None:
        if not await self._require_admin(interaction):
            return
        if file.filename.lower() != PERSONALITY_FILE:
            await interaction.response.send_message(
                f"Only files named '{PERSONALITY_FILE}' are accepted.", ephemeral=True
            )
            return

        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            content = (await file.read()).decode("utf-8")
        except (discord.HTTPException, UnicodeDecodeError) as e:
            logger.warning(f"Could not read uploaded personality from {interaction.user.id}: {e}")
            await interaction.followup.send("Failed to read the uploaded file.", ephemeral=True)
            return

        path = save_personality(self.bot.settings.data_dir, content)
        logger.info(f"Personality updated by {interaction.user.id} ({len(content)} chars) at {path}")
        await interaction.followup.send(
            f"Personality updated from {PERSONALITY_FILE}.", ephemeral=True
        )

    # ------------------------------------------------------------------
    # Admin list
    # ------------------------------------------------------------------

    async def _require_superuser(self, interaction: discord.Interaction) -> bool:
        if self.bot.admin_policy.is_superuser(str(interaction.user.id)):
            return True
        await interaction.response.send_message(NOT_SUPERUSER_MESSAGE, ephemeral=True)
        return False

    @app_commands.command(name="addadmin", description="Let a user change Bob's settings")
    @app_commands.describe(user="User to make an admin")
    async def addadmin(self, interaction: discord.Interaction, user: discord.User) -> None:
        if not await self._require_superuser(interaction):
            return
        policy = self.bot.admin_policy
        if policy.is_superuser(str(user.id)) or not policy.add_admin(str(user.id)):
            await interaction.response.send_message(
                "User is already an admin or superuser.", ephemeral=True
            )
            return
        await interaction.response.send_message(
            f"Added {user.mention} to the admin list.", ephemeral=True
        )

    @app_commands.command(name="removeadmin", description="Take away a user's admin rights")
    @app_commands.describe(user="Admin to remove")
    async def removeadmin(self, interaction: discord.Interaction, user: discord.User) -> None:
        if not await self._require_superuser(interaction):
            return
        if not self.bot.admin_policy.remove_admin(str(user.id)):
            await interaction.response.send_message(
                "User was not in the admin list.", ephemeral=True
            )
            return
        await interaction.response.send_message(
            f"Removed {user.mention} from the admin list.", ephemeral=True
        )

    # ------------------------------------------------------------------
    # Test prompt
    # ------------------------------------------------------------------

    @app_commands.command(name="test", description="Send a test prompt to the AI")
    @app_commands.describe(prompt="Prompt to send")
    async def test(self, interaction: discord.Interaction, prompt: str = "Hello!") -> None:
        if not await self._require_admin(interaction):
            return
        await interaction.response.defer(ephemeral=True, thinking=True)

        outcome = await self.bot.orchestrator.generate(
            prompt,
            caller_id=str(interaction.user.id),
            conversation_id=str(interaction.channel_id),
            community_id=str(interaction.guild_id) if interaction.guild_id else None,
        )
        embed = discord.Embed(title="AI Test", color=discord.Color.blurple())
        embed.add_field(name="Prompt", value=_field(prompt), inline=False)
        embed.add_field(name="Response", value=_field(outcome.content), inline=False)
        embed.set_footer(text=f"Status: {outcome.status.value}")

        sent = await interaction.followup.send(embed=embed, ephemeral=True, wait=True)
        self.bot.orchestrator.remember_reasoning(
            str(sent.id), prompt, outcome.reasoning, str(interaction.user.id)
        )
        if outcome.reasoning.strip():
            await self.bot.delivery.send_thinking_log(interaction.user, prompt, outcome.reasoning)

    # ------------------------------------------------------------------
    # Context menu
    # ------------------------------------------------------------------

    async def show_thoughts(self, interaction: discord.Interaction, message: discord.Message) -> None:
        """DM the cached reasoning behind one of Bob's answers."""
        entry = self.bot.orchestrator.get_cached_reasoning(
            str(message.id), str(interaction.user.id)
        )
        if entry is None:
            await interaction.response.send_message(NO_THOUGHTS_MESSAGE, ephemeral=True)
            return

        await interaction.response.defer(ephemeral=True)
        delivered = await self.bot.delivery.send_thoughts_to_user(
            interaction.user, f"<@{entry.author_id}> ({entry.author_id})", entry.prompt, entry.reasoning
        )
        await interaction.followup.send(
            THOUGHTS_SENT_MESSAGE if delivered else DM_FAILED_MESSAGE, ephemeral=True
        )
