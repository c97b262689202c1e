"""Discord bot layer: client, cogs, reasoning delivery and pagination views."""

from bobbot.bot.client import BobBot

__all__ = ["BobBot"]
