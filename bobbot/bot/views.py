"""
Pagination embed and buttons for paged AI reports.

Buttons carry the session id in their custom id (``ai:page:<prev|next>:<id>``);
every click re-reads the session from the PaginationService, so several
messages can never disagree about the page.
"""

from __future__ import annotations

import re

import discord

from bobbot.services.pagination import PagedSession, PaginationService

PAGE_ID_PREFIX = "ai:page:"
PAGE_ID_TEMPLATE = r"ai:page:(?P<action>prev|next):(?P<session_id>.+)"
EXPIRED_MESSAGE = "This pagination session has expired, mate. Try asking me again."
DESCRIPTION_LIMIT = 4096


def page_custom_id(action: str, session_id: str) -> str:
    return f"{PAGE_ID_PREFIX}{action}:{session_id}"


def build_pagination_embed(session: PagedSession) -> discord.Embed:
    """Render the session's current page."""
    body = session.current_text.strip() or "(nothing on this page)"
    description = f"{session.natural_response.strip()}\n\n{body}".strip()
    if len(description) > DESCRIPTION_LIMIT:
        description = description[: DESCRIPTION_LIMIT - 3] + "..."
    embed = discord.Embed(
        title=session.title[:256],
        description=description,
        color=discord.Color.gold(),
    )
    embed.set_footer(text=f"Page {session.current_page + 1}/{session.page_count}")
    return embed


async def turn_page(
    pagination: PaginationService,
    interaction: discord.Interaction,
    session_id: str,
    delta: int,
) -> None:
    """Move a session by ``delta`` pages and redraw the message it lives on."""
    session = pagination.page(session_id, delta)
    if session is None:
        await interaction.response.send_message(EXPIRED_MESSAGE, ephemeral=True)
        return
    await interaction.response.edit_message(
        embed=build_pagination_embed(session),
        view=PaginationView(session_id, session),
    )


class PageButton(discord.ui.DynamicItem[discord.ui.Button], template=PAGE_ID_TEMPLATE):
    """
    One prev/next button, identified entirely by its custom id.

    Registered on the client with ``add_dynamic_items``, so clicks are routed
    here even after the message's view was dropped or the bot restarted.
    """

    def __init__(self, action: str, session_id: str, *, disabled: bool = False) -> None:
        if action == "prev":
            label = "\N{BLACK LEFT-POINTING TRIANGLE} Prev"
        else:
            label = "Next \N{BLACK RIGHT-POINTING TRIANGLE}"
        super().__init__(
            discord.ui.Button(
                label=label,
                style=discord.ButtonStyle.secondary,
                custom_id=page_custom_id(action, session_id),
                disabled=disabled,
            )
        )
        self.action = action
        self.session_id = session_id

    @classmethod
    async def from_custom_id(
        cls,
        interaction: discord.Interaction,
        item: discord.ui.Button,
        match: re.Match[str],
    ) -> PageButton:
        return cls(match["action"], match["session_id"])

    async def callback(self, interaction: discord.Interaction) -> None:
        delta = -1 if self.action == "prev" else +1
        await turn_page(interaction.client.pagination, interaction, self.session_id, delta)


class PaginationView(discord.ui.View):
    """
    Prev/next buttons for one paged session.

    The view never times out; the buttons keep working for as long as the
    PaginationService keeps the session, and answer with EXPIRED_MESSAGE after.

    Args:
        session_id: Session this view navigates
        session: Current snapshot, used to disable the buttons at either end
    """

    def __init__(self, session_id: str, session: PagedSession):
        super().__init__(timeout=None)
        self.session_id = session_id
        self.prev_button = PageButton("prev", session_id, disabled=session.is_first)
        self.next_button = PageButton("next", session_id, disabled=session.is_last)
        self.add_item(self.prev_button)
        self.add_item(self.next_button)
