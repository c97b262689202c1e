"""
System prompt construction.

The prompt is rebuilt for every generation call from four parts: the static
persona, live facts about who is talking and where, an optional operator
personality override, and a fixed block of behavioral rules.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)

PERSONALITY_FILE = "personality.txt"

PERSONA = (
    "You are Bob, a seasoned Old School RuneScape (OSRS) veteran and helpful assistant.\n"
    "You have access to tools to look up item prices, player stats, and the bot's "
    "health/configuration.\n"
    "Always maintain your character and follow the tool usage guidelines."
)

RULES = (
    "INTENT DETECTION & CORE RULES:\n"
    "1. CHAT/LORE/RP INTENT: If the user is greeting you, joking, talking about OSRS lore "
    "(NPCs like Wise Old Man, King Roald, Gods), or roleplaying, DO NOT use any tools. "
    "Respond in character with your veteran wit.\n"
    "2. DATA LOOKUP INTENT: If the user explicitly asks for a price, a player's level/stats, "
    "quest info, or slayer tasks, use the appropriate tool.\n"
    "3. UNCERTAINTY: If you aren't 100% sure if they want data or a joke, lean towards a "
    "character-driven chat response first.\n"
    "4. NPCs ARE NOT PLAYERS: Do not attempt to look up stats for OSRS NPCs or bosses "
    "(e.g. Wise Old Man, Zulrah) using player tools.\n"
    "5. NO LOOPS: If a tool fails once, do not keep trying the same thing. "
    "Blame RNG or lag and move on.\n"
    "6. LONG LISTS: If you have a lot of data to show, use display_paginated_report "
    "instead of writing it all out.\n\n"
    "IMPORTANT:\n"
    "- DO NOT use tools for simple greetings or general chat.\n"
    "- If the user is just saying 'hi', 'how are you', or asking about you (Bob), respond "
    "in character without calling any tools.\n"
    "- Do not repeat the same tool call if it already failed or returned the same info."
)

LOADING_MESSAGES = (
    "One moment, just checking the G.E. prices...",
    "Consulting the Wise Old Man... hold your capes.",
    "Just finishing this herb run, I'll be with you in a tick!",
    "Hold on, I've got a random event to deal with... sandwich lady is persistent.",
    "Checking the highscores... don't expect too much.",
    "RNG is taking its time today, one second...",
    "Lagging a bit, must be a world DC coming. Hang on...",
    "Let me just bank these logs first...",
    "One sec, trying to find my spade. It's always in the last place you look!",
    "Just hopping worlds to find a quiet spot to think...",
    "Hold on, need to drink a dose of prayer pot...",
    "Drinking a dose of stamina pot for the long thinking sprint...",
    "Looking for a world that isn't full of bots...",
)


def random_loading_message() -> str:
    return random.choice(LOADING_MESSAGES)


class PromptFacts(BaseModel):
    """Live facts about the speaker and the place they're speaking in."""

    user_name: str = "unknown user"
    user_nickname: str = "none"
    linked_identity: str = "None"
    community_name: str = "Direct Message"
    channel_name: str = "unknown channel"


def build_system_prompt(facts: PromptFacts, personality: str = "") -> str:
    """Assemble the system prompt for one call."""
    prompt = (
        f"{PERSONA}\n\n"
        "CONTEXT INFORMATION:\n"
        f"- Current User: {facts.user_name} (Nickname: {facts.user_nickname})\n"
        f"- Linked OSRS Name: {facts.linked_identity}\n"
        f"- Server: {facts.community_name}\n"
        f"- Channel: {facts.channel_name}\n\n"
        f"{RULES}"
    )
    if personality.strip():
        prompt += f"\n\nCORE GUIDELINES & PERSONALITY:\n{personality.strip()}"
    return prompt


def build_user_message(utterance: str, reply_context: str | None = None) -> str:
    """Prefix the utterance with the message it replies to, quoted."""
    if reply_context and reply_context.strip():
        return f'(Replying to: "{reply_context.strip()}")\n{utterance}'
    return utterance


def load_personality(data_dir: Path | str) -> str:
    """
    Read the operator's personality override.

    Looks in the data directory first (where uploads go), then falls back to
    the working directory's default template. Missing or unreadable files
    mean no override.
    """
    path = Path(data_dir) / PERSONALITY_FILE
    if not path.exists():
        path = Path(PERSONALITY_FILE)
    if not path.exists():
        return ""
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Failed to read {path}: {e}")
        return ""


def save_personality(data_dir: Path | str, content: str) -> Path:
    """Write the personality override into the data directory."""
    path = Path(data_dir) / PERSONALITY_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
