"""Tests for LoopGuard and argument normalization."""

import pytest

from bobbot.llm.loop_guard import LoopGuard, normalize_arguments
from bobbot.llm.models import LoopDetected


class TestNormalizeArguments:
    def test_key_order_is_ignored(self):
        assert normalize_arguments('{"b": 1, "a": 2}') == normalize_arguments('{"a":2,"b":1}')

    def test_whitespace_is_ignored(self):
        assert normalize_arguments('  {"a": [1, 2]}  ') == '{"a":[1,2]}'

    def test_invalid_json_is_compared_verbatim(self):
        assert normalize_arguments(" not json ") == "not json"

    def test_empty_and_none(self):
        assert normalize_arguments("") == ""
        assert normalize_arguments(None) == ""


class TestLoopGuard:
    def test_sequence_numbers_start_at_one(self):
        guard = LoopGuard()
        assert guard.check("a", "{}") == 1
        assert guard.check("b", "{}") == 2

    def test_same_signature_trips_on_third_call(self):
        guard = LoopGuard(max_total_calls=5, max_calls_per_signature=2)
        guard.check("echo", '{"x": 1}')
        guard.check("echo", '{"x": 1}')
        with pytest.raises(LoopDetected) as exc_info:
            guard.check("echo", '{"x": 1}')
        assert exc_info.value.signature == ("echo", '{"x":1}')

    def test_reordered_arguments_share_a_signature(self):
        guard = LoopGuard(max_calls_per_signature=2)
        guard.check("lookup", '{"b": 1, "a": 2}')
        guard.check("lookup", '{"a": 2, "b": 1}')
        with pytest.raises(LoopDetected):
            guard.check("lookup", '{"a":2,"b":1}')

    def test_different_arguments_are_different_signatures(self):
        guard = LoopGuard(max_calls_per_signature=1)
        guard.check("echo", '{"x": 1}')
        guard.check("echo", '{"x": 2}')
        guard.check("other", '{"x": 1}')

    def test_total_ceiling_trips_on_sixth_call(self):
        guard = LoopGuard(max_total_calls=5, max_calls_per_signature=2)
        for i in range(5):
            guard.check("echo", f'{{"x": {i}}}')
        with pytest.raises(LoopDetected) as exc_info:
            guard.check("echo", '{"x": 99}')
        assert exc_info.value.signature is None
        assert guard.total_calls == 6

    def test_ceilings_are_independent(self):
        guard = LoopGuard(max_total_calls=10, max_calls_per_signature=3)
        for _ in range(3):
            guard.check("echo", "{}")
        with pytest.raises(LoopDetected):
            guard.check("echo", "{}")
        assert guard.total_calls == 4

    def test_missing_name_is_counted_as_unknown(self):
        guard = LoopGuard()
        guard.check(None, "{}")
        assert guard.per_signature_calls[("unknown", "{}")] == 1

    def test_reset_clears_both_counters(self):
        guard = LoopGuard(max_calls_per_signature=1)
        guard.check("echo", "{}")
        guard.reset()
        assert guard.total_calls == 0
        assert guard.check("echo", "{}") == 1

    def test_rejects_zero_ceilings(self):
        with pytest.raises(ValueError):
            LoopGuard(max_total_calls=0)
        with pytest.raises(ValueError):
            LoopGuard(max_calls_per_signature=0)
