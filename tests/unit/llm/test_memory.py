"""Tests for ConversationMemory and ConversationStore."""

import pytest

from bobbot.llm.memory import ConversationMemory, ConversationStore


def _user(text):
    return {"role": "user", "content": text}


def _assistant(text):
    return {"role": "assistant", "content": text}


class TestConversationMemory:
    def test_keeps_messages_in_order(self):
        memory = ConversationMemory("c1", max_messages=5)
        memory.extend([_user("a"), _assistant("b")])
        assert memory.messages() == [_user("a"), _assistant("b")]

    def test_evicts_oldest_beyond_window(self):
        memory = ConversationMemory("c1", max_messages=3)
        for i in range(5):
            memory.append(_user(str(i)))
        assert [m["content"] for m in memory.messages()] == ["2", "3", "4"]

    def test_leading_orphan_tool_messages_are_dropped(self):
        memory = ConversationMemory("c1", max_messages=3)
        memory.extend([
            _user("q"),
            {"role": "assistant", "content": None, "tool_calls": [{"id": "call_1"}]},
            {"role": "tool", "tool_call_id": "call_1", "content": "r1"},
            {"role": "tool", "tool_call_id": "call_2", "content": "r2"},
            _assistant("answer"),
        ])
        messages = memory.messages()
        assert messages == [_assistant("answer")]

    def test_messages_returns_copies(self):
        memory = ConversationMemory("c1")
        memory.append(_user("a"))
        memory.messages()[0]["content"] = "changed"
        assert memory.messages()[0]["content"] == "a"

    def test_clear(self):
        memory = ConversationMemory("c1")
        memory.append(_user("a"))
        memory.clear()
        assert len(memory) == 0

    def test_rejects_zero_window(self):
        with pytest.raises(ValueError):
            ConversationMemory("c1", max_messages=0)


class TestConversationStore:
    def test_get_or_create_returns_same_memory(self):
        store = ConversationStore(max_messages=4)
        assert store.get_or_create("c1") is store.get_or_create("c1")
        assert store.get_or_create("c1").max_messages == 4

    def test_conversations_are_independent(self):
        store = ConversationStore()
        store.append("c1", _user("one"))
        store.append("c2", _user("two"))
        assert store.get_or_create("c1").messages() == [_user("one")]
        assert store.get_or_create("c2").messages() == [_user("two")]
        assert len(store) == 2
        assert "c1" in store
        assert "c3" not in store
