"""
Tests for BobBot helpers.

Pure methods are exercised on an instance created without connecting to
Discord.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bobbot.bot.client import BobBot
from bobbot.bot.views import PageButton
from bobbot.config.settings import Settings
from bobbot.storage import JsonStorage, RuntimeSettings


def _make_bot(tmp_path, chat_channel_id=None) -> BobBot:
    bot = BobBot.__new__(BobBot)
    bot.storage = JsonStorage(tmp_path)
    if chat_channel_id:
        bot.storage.save_settings(RuntimeSettings(chat_channel_id=chat_channel_id))
    return bot


class TestChatChannel:
    def test_unset_channel_disables_chat(self, tmp_path):
        bot = _make_bot(tmp_path)
        assert bot.is_chat_channel(111) is False

    def test_configured_channel_only(self, tmp_path):
        bot = _make_bot(tmp_path, chat_channel_id="111")
        assert bot.is_chat_channel(111) is True
        assert bot.is_chat_channel(222) is False


class TestPromptFacts:
    @pytest.fixture
    def bot(self, tmp_path):
        bot = _make_bot(tmp_path)
        user = MagicMock()
        user.name = "alice"
        channel = MagicMock()
        channel.name = "general"
        member = MagicMock()
        member.nick = "Ali"
        member.name = "alice"
        guild = MagicMock()
        guild.name = "Clan Chat"
        guild.get_member.return_value = member

        bot.get_user = MagicMock(return_value=user)
        bot.get_channel = MagicMock(return_value=channel)
        bot.get_guild = MagicMock(return_value=guild)
        return bot

    def test_guild_facts(self, bot):
        facts = bot.resolve_prompt_facts("5", "100", "1")
        assert facts.user_name == "alice"
        assert facts.user_nickname == "Ali"
        assert facts.community_name == "Clan Chat"
        assert facts.channel_name == "general"
        bot.get_guild.assert_called_once_with(1)

    def test_direct_message_facts(self, bot):
        facts = bot.resolve_prompt_facts("5", "100", None)
        assert facts.community_name == "Direct Message"
        assert facts.user_nickname == "none"

    def test_unknown_everything_uses_defaults(self, tmp_path):
        bot = _make_bot(tmp_path)
        bot.get_user = MagicMock(return_value=None)
        bot.get_channel = MagicMock(return_value=None)
        bot.get_guild = MagicMock(return_value=None)
        facts = bot.resolve_prompt_facts("5", "100", "1")
        assert facts.user_name == "unknown user"
        assert facts.channel_name == "unknown channel"


class TestSetupHook:
    @pytest.mark.asyncio
    async def test_wires_services_and_page_buttons(self, tmp_path):
        bot = BobBot(Settings(data_dir=tmp_path))
        with patch.object(bot.tree, "sync", new=AsyncMock()), \
                patch.object(BobBot, "add_dynamic_items") as add_items:
            await bot.setup_hook()
        try:
            add_items.assert_called_once_with(PageButton)
            assert bot.orchestrator is not None
            assert bot.get_cog("ChatCog") is not None
            assert bot.get_cog("AdminCog") is not None
        finally:
            await bot._exit_stack.aclose()
