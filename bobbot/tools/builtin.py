"""
Tools that ship with the bot core.

These talk to the bot's own services rather than external APIs: opening a
paginated report for the current answer, and reading or (for admins)
changing the AI configuration. Game-data lookups are registered separately
by whoever provides them.

Every handler reads the caller from the ambient CallContext and returns text
for every outcome, including refusals.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from bobbot.llm.context import current_call_context
from bobbot.llm.prompts import load_personality
from bobbot.services.admin import AdminPolicy
from bobbot.services.pagination import PaginationService
from bobbot.storage import JsonStorage
from bobbot.tools.base import ToolDescriptor

NO_CONTEXT_MESSAGE = "Error: No user context found."


class ReportArguments(BaseModel):
    """Arguments of display_paginated_report; items must be a real list of strings."""

    title: str
    items: list[str]

    model_config = ConfigDict(coerce_numbers_to_str=True)


def _first_error(error: ValidationError) -> str:
    detail = error.errors()[0]
    location = ".".join(str(part) for part in detail["loc"]) or "arguments"
    return f"{location}: {detail['msg']}"


def pagination_tool(pagination: PaginationService, page_size: int = 10) -> ToolDescriptor:
    """Tool that moves a long list into a paged session attached to the current answer."""

    def display_paginated_report(title: str, items: list[str]) -> str:
        try:
            report = ReportArguments(title=title, items=items)
        except ValidationError as e:
            return (
                f"Error: Invalid report arguments ({_first_error(e)}). "
                "Pass items as a JSON array of strings, one entry per line."
            )
        title, items = report.title, report.items
        if not items:
            return "Nothing to show in the report, mate."
        context = current_call_context()
        if context is None:
            return NO_CONTEXT_MESSAGE
        session_id = pagination.open(title, "", items, page_size)
        context.attach_pagination(session_id)
        return (
            f"Paginated report created with title '{title}' and {len(items)} items. "
            "I will attach the interactive buttons to my response automatically. "
            "Just tell the user you've generated the report and summarize what's in it."
        )

    return ToolDescriptor(
        name="display_paginated_report",
        description=(
            "Display a long list of items or information in a paginated view with buttons. "
            "Use this when you have a lot of data to show (e.g. many player stats, price "
            "lists, or search results)."
        ),
        parameters={
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Title of the report"},
                "items": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "One entry per line of the report",
                },
            },
            "required": ["title", "items"],
        },
        handler=display_paginated_report,
    )


def config_tools(
    storage: JsonStorage,
    admin_policy: AdminPolicy,
    data_dir: Path | str | None = None,
) -> list[ToolDescriptor]:
    """Tools for reading and changing the AI configuration."""
    personality_dir = Path(data_dir) if data_dir is not None else storage.data_dir

    def get_ai_config() -> str:
        settings = storage.load_settings()
        return (
            "AI Configuration:\n"
            f"- URL: {settings.ai_url or 'not set'}\n"
            f"- Model: {settings.ai_model or 'not set'}"
        )

    def get_ai_personality() -> str:
        personality = load_personality(personality_dir)
        if not personality.strip():
            return "No custom personality loaded. I'm using my default OSRS veteran persona."
        return personality

    def update_ai_model(model_name: str) -> str:
        context = current_call_context()
        if context is None or not admin_policy.is_admin(context.caller_id):
            return (
                "Sorry mate, only admins can change my brain settings. "
                "You don't have the requirements for this quest."
            )
        model_name = model_name.strip()
        if not model_name:
            return "That model name is empty, mate."
        storage.update_settings(lambda s: s.with_ai_model(model_name))
        return (
            f"Alright, I'll try using the {model_name} model from now on. "
            "Hope it's got more XP than the last one!"
        )

    def update_ai_url(url: str) -> str:
        context = current_call_context()
        if context is None or not admin_policy.is_admin(context.caller_id):
            return (
                "Nice try, but you need higher levels to change my connection settings. "
                "Admins only!"
            )
        url = url.strip()
        if not url:
            return "That URL is empty, mate."
        storage.update_settings(lambda s: s.with_ai_url(url))
        return f"Connection updated to {url}. Hope the ping is better over there."

    no_args = {"type": "object", "properties": {}}
    return [
        ToolDescriptor(
            name="get_ai_config",
            description="Get the current AI assistant configuration including API URL and model name",
            parameters=no_args,
            handler=get_ai_config,
        ),
        ToolDescriptor(
            name="get_ai_personality",
            description="Get the current personality profile of Bob",
            parameters=no_args,
            handler=get_ai_personality,
        ),
        ToolDescriptor(
            name="update_ai_model",
            description="Update the AI model being used (Requires Admin)",
            parameters={
                "type": "object",
                "properties": {"model_name": {"type": "string"}},
                "required": ["model_name"],
            },
            handler=update_ai_model,
        ),
        ToolDescriptor(
            name="update_ai_url",
            description="Update the AI API URL (Requires Admin)",
            parameters={
                "type": "object",
                "properties": {"url": {"type": "string"}},
                "required": ["url"],
            },
            handler=update_ai_url,
        ),
    ]


def core_tools(
    storage: JsonStorage,
    pagination: PaginationService,
    admin_policy: AdminPolicy,
    page_size: int = 10,
    data_dir: Path | str | None = None,
) -> list[ToolDescriptor]:
    """Every built-in tool, ready for ToolRegistry.register_all."""
    return [pagination_tool(pagination, page_size), *config_tools(storage, admin_policy, data_dir)]
