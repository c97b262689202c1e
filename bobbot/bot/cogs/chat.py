"""
ChatCog: conversational replies in the configured chat channel.

The bot answers when it is mentioned or its trigger word appears. It replies
at once with a loading line, then edits that reply with the answer. Reasoning
is cached under the reply's id and DMed to opted-in admins, never posted.
"""

from __future__ import annotations

import discord
from discord.ext import commands

from bobbot.bot.views import PaginationView, build_pagination_embed
from bobbot.config.logging import get_logger
from bobbot.llm import GenerationOutcome
from bobbot.llm.prompts import random_loading_message

logger = get_logger(__name__)

DELIVERY_FAILURE_MESSAGE = "Sorry, I'm having trouble thinking right now. Blame it on the server lag."


async def referenced_text(message: discord.Message) -> str | None:
    """Text of the message this one replies to, if any."""
    reference = message.reference
    if reference is None or reference.message_id is None:
        return None
    resolved = reference.resolved
    if not isinstance(resolved, discord.Message):
        try:
            resolved = await message.channel.fetch_message(reference.message_id)
        except discord.HTTPException as e:
            logger.debug(f"Could not fetch referenced message {reference.message_id}: {e}")
            return None
    return resolved.clean_content or None


async def deliver_outcome(
    bot,
    reply: discord.Message,
    outcome: GenerationOutcome,
    prompt: str,
    author: discord.abc.User,
) -> None:
    """
    Show an outcome in an already-sent reply and route its reasoning.

    The reasoning is cached under ``reply.id`` so "Show Thoughts" on that
    message finds it.
    """
    session = bot.pagination.get(outcome.pagination_id) if outcome.pagination_id else None
    if session is not None:
        # The answer is the embed's preamble, repeated on every page.
        view = PaginationView(outcome.pagination_id, session)
        await reply.edit(content=None, embed=build_pagination_embed(session), view=view)
    else:
        await reply.edit(content=outcome.content)

    bot.orchestrator.remember_reasoning(str(reply.id), prompt, outcome.reasoning, str(author.id))
    if outcome.reasoning.strip():
        await bot.delivery.send_thinking_log(author, prompt, outcome.reasoning)


class ChatCog(commands.Cog):
    """Answers chat messages addressed to the bot."""

    def __init__(self, bot) -> None:
        self.bot = bot

    def _is_addressed(self, message: discord.Message) -> bool:
        if self.bot.user is not None and self.bot.user.mentioned_in(message):
            return True
        trigger = self.bot.settings.bot.trigger_word.strip().lower()
        return bool(trigger) and trigger in message.content.lower()

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        """
        Reply to messages addressed to the bot.

        Ignores:
        - Messages from bots (including ourselves)
        - Messages outside the configured chat channel
        - Messages that neither mention the bot nor contain the trigger word
        """
        if message.author.bot:
            return
        if not self.bot.is_chat_channel(message.channel.id):
            return
        if not self._is_addressed(message):
            return

        prompt = message.clean_content
        reply_context = await referenced_text(message)
        reply = await message.reply(random_loading_message())

        try:
            outcome = await self.bot.orchestrator.generate(
                prompt,
                caller_id=str(message.author.id),
                conversation_id=str(message.channel.id),
                community_id=str(message.guild.id) if message.guild else None,
                reply_context=reply_context,
            )
            logger.info(
                f"Answered {message.author} in #{message.channel} "
                f"({outcome.status.value}, {len(outcome.tool_calls)} tool calls)"
            )
            await deliver_outcome(self.bot, reply, outcome, prompt, message.author)
        except Exception as e:
            logger.exception(f"Failed to deliver reply to {message.author}: {e}")
            try:
                await reply.edit(content=DELIVERY_FAILURE_MESSAGE)
            except discord.HTTPException as edit_error:
                logger.warning(f"Could not post failure notice: {edit_error}")
