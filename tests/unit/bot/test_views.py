"""Tests for the pagination embed and buttons."""

from __future__ import annotations

import re
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bobbot.bot.views import (
    EXPIRED_MESSAGE,
    PAGE_ID_TEMPLATE,
    PageButton,
    PaginationView,
    build_pagination_embed,
    page_custom_id,
    turn_page,
)
from bobbot.services import PaginationService


def _make_interaction(pagination=None):
    interaction = MagicMock(spec=discord.Interaction)
    interaction.client = MagicMock(pagination=pagination)
    interaction.response = MagicMock()
    interaction.response.edit_message = AsyncMock()
    interaction.response.send_message = AsyncMock()
    return interaction


async def _button_for(custom_id: str, interaction) -> PageButton:
    """Rebuild a button from its custom id the way the client does for dynamic items."""
    return await PageButton.from_custom_id(
        interaction, MagicMock(), re.fullmatch(PAGE_ID_TEMPLATE, custom_id)
    )


@pytest.fixture
def pagination():
    return PaginationService()


@pytest.fixture
def session_id(pagination):
    return pagination.open("Drops", "Here you go", [f"Item {i}" for i in range(1, 26)], 10)


class TestCustomIds:
    def test_format(self):
        assert page_custom_id("next", "abc") == "ai:page:next:abc"

    def test_template_matches_page_ids(self):
        match = re.fullmatch(PAGE_ID_TEMPLATE, "ai:page:prev:abc")
        assert match["action"] == "prev"
        assert match["session_id"] == "abc"

    def test_template_rejects_foreign_ids(self):
        assert re.fullmatch(PAGE_ID_TEMPLATE, "other:thing") is None
        assert re.fullmatch(PAGE_ID_TEMPLATE, "ai:page:jump:abc") is None
        assert re.fullmatch(PAGE_ID_TEMPLATE, "ai:page:next:") is None


class TestEmbed:
    def test_first_page(self, pagination, session_id):
        embed = build_pagination_embed(pagination.get(session_id))
        assert embed.title == "Drops"
        assert embed.description.startswith("Here you go\n\nItem 1\n")
        assert "Item 11" not in embed.description
        assert embed.footer.text == "Page 1/3"

    def test_empty_report(self, pagination):
        session = pagination.get(pagination.open("Empty", "", [], 10))
        assert "(nothing on this page)" in build_pagination_embed(session).description


class TestPaginationView:
    @pytest.mark.asyncio
    async def test_never_times_out(self, pagination, session_id):
        view = PaginationView(session_id, pagination.get(session_id))
        assert view.timeout is None

    @pytest.mark.asyncio
    async def test_initial_button_state(self, pagination, session_id):
        view = PaginationView(session_id, pagination.get(session_id))
        assert view.prev_button.item.disabled is True
        assert view.next_button.item.disabled is False
        assert view.prev_button.custom_id == f"ai:page:prev:{session_id}"
        assert view.next_button.custom_id == f"ai:page:next:{session_id}"

    @pytest.mark.asyncio
    async def test_single_page_disables_both(self, pagination):
        sid = pagination.open("Short", "", ["one"], 10)
        view = PaginationView(sid, pagination.get(sid))
        assert view.prev_button.item.disabled is True
        assert view.next_button.item.disabled is True


class TestTurnPage:
    @pytest.mark.asyncio
    async def test_next_moves_page_and_redraws(self, pagination, session_id):
        interaction = _make_interaction()
        await turn_page(pagination, interaction, session_id, +1)

        kwargs = interaction.response.edit_message.call_args.kwargs
        assert kwargs["embed"].footer.text == "Page 2/3"
        assert isinstance(kwargs["view"], PaginationView)
        assert kwargs["view"].prev_button.item.disabled is False
        assert pagination.get(session_id).current_page == 1

    @pytest.mark.asyncio
    async def test_last_page_disables_next(self, pagination, session_id):
        for _ in range(2):
            await turn_page(pagination, _make_interaction(), session_id, +1)
        interaction = _make_interaction()
        await turn_page(pagination, interaction, session_id, +1)

        kwargs = interaction.response.edit_message.call_args.kwargs
        assert kwargs["embed"].footer.text == "Page 3/3"
        assert kwargs["view"].next_button.item.disabled is True

    @pytest.mark.asyncio
    async def test_expired_session_replies_ephemerally(self, pagination, session_id):
        for _ in range(pagination.max_sessions):
            pagination.open("Newer", "", ["x"], 10)
        interaction = _make_interaction()
        await turn_page(pagination, interaction, session_id, +1)

        interaction.response.send_message.assert_awaited_once_with(EXPIRED_MESSAGE, ephemeral=True)
        interaction.response.edit_message.assert_not_called()


class TestPageButton:
    """Clicks routed by custom id only, with no live view behind the message."""

    @pytest.mark.asyncio
    async def test_next_click_from_custom_id(self, pagination, session_id):
        interaction = _make_interaction(pagination)
        button = await _button_for(f"ai:page:next:{session_id}", interaction)
        assert button.action == "next"
        assert button.session_id == session_id

        await button.callback(interaction)
        assert pagination.get(session_id).current_page == 1
        kwargs = interaction.response.edit_message.call_args.kwargs
        assert kwargs["embed"].footer.text == "Page 2/3"

    @pytest.mark.asyncio
    async def test_prev_click_at_first_page_is_harmless(self, pagination, session_id):
        interaction = _make_interaction(pagination)
        button = await _button_for(f"ai:page:prev:{session_id}", interaction)
        await button.callback(interaction)

        assert pagination.get(session_id).current_page == 0
        kwargs = interaction.response.edit_message.call_args.kwargs
        assert kwargs["embed"].footer.text == "Page 1/3"

    @pytest.mark.asyncio
    async def test_click_on_forgotten_session_says_expired(self, pagination):
        interaction = _make_interaction(pagination)
        button = await _button_for("ai:page:next:no-such-session", interaction)
        await button.callback(interaction)

        interaction.response.send_message.assert_awaited_once_with(EXPIRED_MESSAGE, ephemeral=True)
