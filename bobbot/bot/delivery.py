"""
Private delivery of reasoning.

Reasoning never appears in the public channel. After each answer it is DMed
to the admins who opted in (or the superuser if nobody did), and any user may
request it later for an answer they asked for. Bodies longer than one
message are split into labeled parts.
"""

from __future__ import annotations

import discord

from bobbot.config.logging import get_logger
from bobbot.services.admin import AdminPolicy

logger = get_logger(__name__)

EMBED_FIELD_LIMIT = 1024
_FENCE = "```"


def chunk_reasoning(text: str, size: int = 1900) -> list[str]:
    """Split ``text`` into consecutive pieces of at most ``size`` characters."""
    if size < 1:
        raise ValueError("size must be at least 1")
    return [text[i:i + size] for i in range(0, len(text), size)] or [""]


def format_reasoning_messages(text: str, size: int = 1900) -> list[str]:
    """
    Render reasoning as one or more code-block messages.

    A single chunk is sent bare; multiple chunks are labeled ``(Part n)``.
    Triple backticks inside the reasoning are broken up so they cannot close
    the surrounding code block early.
    """
    safe = text.replace(_FENCE, "`\u200b``")
    chunks = chunk_reasoning(safe, size)
    if len(chunks) == 1:
        return [f"{_FENCE}\n{chunks[0]}\n{_FENCE}"]
    return [
        f"{_FENCE}\n(Part {part})\n{chunk}\n{_FENCE}"
        for part, chunk in enumerate(chunks, start=1)
    ]


def _clip(text: str, limit: int = EMBED_FIELD_LIMIT) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


class ThoughtDelivery:
    """
    Sends reasoning logs by DM.

    Args:
        client: Connected Discord client used to look up users
        admin_policy: Decides who receives logs at the moment of delivery
        chunk_size: Longest body chunk per DM
    """

    def __init__(self, client: discord.Client, admin_policy: AdminPolicy, chunk_size: int = 1900):
        self._client = client
        self._admin_policy = admin_policy
        self._chunk_size = chunk_size

    def _header(self, title: str, author_label: str, prompt: str) -> discord.Embed:
        embed = discord.Embed(title=title, color=discord.Color.dark_teal())
        embed.add_field(name="For", value=_clip(author_label), inline=True)
        embed.add_field(name="Prompt", value=_clip(prompt or "(empty)"), inline=False)
        return embed

    async def _send(self, user: discord.abc.User, embed: discord.Embed, thinking: str) -> bool:
        try:
            await user.send(embed=embed)
            for body in format_reasoning_messages(thinking, self._chunk_size):
                await user.send(body)
        except discord.HTTPException as e:
            logger.warning(f"Failed to DM thinking log to user {user.id}: {e}")
            return False
        return True

    async def _resolve_user(self, user_id: str) -> discord.abc.User | None:
        user = self._client.get_user(int(user_id))
        if user is not None:
            return user
        try:
            return await self._client.fetch_user(int(user_id))
        except (discord.HTTPException, ValueError) as e:
            logger.warning(f"Failed to retrieve user {user_id} to send thinking log: {e}")
            return None

    async def send_thinking_log(self, author: discord.abc.User, prompt: str, thinking: str) -> int:
        """
        DM a reasoning log to every current recipient.

        Returns:
            Number of recipients the log was delivered to
        """
        if not thinking.strip():
            return 0
        author_label = f"{author} ({author.id})"
        delivered = 0
        for user_id in self._admin_policy.thought_recipients():
            user = await self._resolve_user(user_id)
            if user is None:
                continue
            embed = self._header("\N{ROBOT FACE} AI Thinking Log", author_label, prompt)
            if await self._send(user, embed, thinking):
                logger.debug(f"Sent thinking log to {user_id}")
                delivered += 1
        return delivered

    async def send_thoughts_to_user(
        self, target: discord.abc.User, author_label: str, prompt: str, thinking: str
    ) -> bool:
        """DM cached reasoning to one user on request."""
        embed = self._header("\N{ROBOT FACE} AI Thought Breakdown (On-demand)", author_label, prompt)
        return await self._send(target, embed, thinking)
