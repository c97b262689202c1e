"""
Tests for the built-in tools.

Handlers are invoked through a ToolRegistry the way the orchestrator does,
with a CallContext installed to stand in for the generation call.
"""

import pytest

from bobbot.llm.context import CallContext, call_context
from bobbot.services import AdminPolicy, PaginationService
from bobbot.storage import JsonStorage, RuntimeSettings
from bobbot.tools import ToolRegistry
from bobbot.tools.builtin import NO_CONTEXT_MESSAGE, core_tools

SUPERUSER = "100"


@pytest.fixture
def storage(tmp_path):
    store = JsonStorage(tmp_path)
    store.save_settings(RuntimeSettings(ai_url="http://localhost:1234/v1", ai_model="qwen3"))
    return store


@pytest.fixture
def pagination():
    return PaginationService()


@pytest.fixture
def registry(storage, pagination):
    reg = ToolRegistry()
    reg.register_all(core_tools(storage, pagination, AdminPolicy(storage, SUPERUSER), page_size=10))
    return reg


def test_core_tools_names(registry):
    assert registry.names == [
        "display_paginated_report",
        "get_ai_config",
        "get_ai_personality",
        "update_ai_model",
        "update_ai_url",
    ]


class TestPaginatedReport:
    def test_opens_session_and_attaches_it(self, registry, pagination):
        items = [f"Item {i}" for i in range(1, 26)]
        context = CallContext(caller_id="1")
        with call_context(context):
            result = registry.invoke("display_paginated_report", {"title": "Drops", "items": items})

        assert "Paginated report created with title 'Drops' and 25 items" in result
        session = pagination.get(context.pagination_id)
        assert session.page_count == 3
        assert session.pages[0].splitlines() == items[:10]
        assert session.pages[2].splitlines() == items[20:]

    def test_empty_items(self, registry, pagination):
        with call_context(CallContext(caller_id="1")):
            result = registry.invoke("display_paginated_report", {"title": "Nothing", "items": []})
        assert result == "Nothing to show in the report, mate."
        assert len(pagination) == 0

    def test_requires_context(self, registry, pagination):
        result = registry.invoke("display_paginated_report", {"title": "T", "items": ["a"]})
        assert result == NO_CONTEXT_MESSAGE
        assert len(pagination) == 0

    def test_string_items_are_rejected(self, registry, pagination):
        with call_context(CallContext(caller_id="1")) as context:
            result = registry.invoke(
                "display_paginated_report", {"title": "Fruit", "items": "apple\nbanana"}
            )
        assert result.startswith("Error: Invalid report arguments (items:")
        assert "JSON array of strings" in result
        assert context.pagination_id is None
        assert len(pagination) == 0

    def test_non_string_entries_are_rejected(self, registry, pagination):
        with call_context(CallContext(caller_id="1")):
            result = registry.invoke(
                "display_paginated_report", {"title": "Fruit", "items": [{"name": "apple"}]}
            )
        assert result.startswith("Error: Invalid report arguments (items.0:")
        assert len(pagination) == 0

    def test_numbers_become_text(self, registry, pagination):
        context = CallContext(caller_id="1")
        with call_context(context):
            registry.invoke("display_paginated_report", {"title": "Levels", "items": [99, 98]})
        assert pagination.get(context.pagination_id).pages[0].splitlines() == ["99", "98"]


class TestConfigTools:
    def test_get_ai_config(self, registry):
        result = registry.invoke("get_ai_config")
        assert "- URL: http://localhost:1234/v1" in result
        assert "- Model: qwen3" in result

    def test_get_ai_personality_default(self, registry, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        assert "default OSRS veteran persona" in registry.invoke("get_ai_personality")

    def test_get_ai_personality_override(self, registry, tmp_path):
        (tmp_path / "personality.txt").write_text("Grumpy skiller.", encoding="utf-8")
        assert registry.invoke("get_ai_personality") == "Grumpy skiller."

    def test_admin_can_update_model(self, registry, storage):
        with call_context(CallContext(caller_id=SUPERUSER)):
            result = registry.invoke("update_ai_model", {"model_name": "llama3"})
        assert "llama3" in result
        assert storage.load_settings().ai_model == "llama3"

    def test_non_admin_cannot_update_model(self, registry, storage):
        with call_context(CallContext(caller_id="200")):
            result = registry.invoke("update_ai_model", {"model_name": "llama3"})
        assert "only admins" in result
        assert storage.load_settings().ai_model == "qwen3"

    def test_listed_admin_can_update_url(self, registry, storage):
        storage.update_settings(lambda s: s.with_admin_user_ids({"300"}))
        with call_context(CallContext(caller_id="300")):
            result = registry.invoke("update_ai_url", {"url": "http://other:8080"})
        assert "Connection updated to http://other:8080" in result
        assert storage.load_settings().ai_url == "http://other:8080"

    def test_update_url_without_context_is_refused(self, registry, storage):
        result = registry.invoke("update_ai_url", {"url": "http://evil"})
        assert "Admins only" in result
        assert storage.load_settings().ai_url == "http://localhost:1234/v1"

    def test_blank_model_is_rejected(self, registry, storage):
        with call_context(CallContext(caller_id=SUPERUSER)):
            result = registry.invoke("update_ai_model", {"model_name": "  "})
        assert "empty" in result
        assert storage.load_settings().ai_model == "qwen3"
