"""Tests for the call-scoped CallContext."""

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from bobbot.llm.context import CallContext, call_context, current_call_context, with_context


class TestCallContext:
    def test_absent_outside_a_call(self):
        assert current_call_context() is None

    def test_installed_for_the_block_and_restored(self):
        context = CallContext(caller_id="1", community_id="g1")
        with call_context(context):
            assert current_call_context() is context
        assert current_call_context() is None

    def test_restored_when_block_raises(self):
        with pytest.raises(RuntimeError):
            with call_context(CallContext(caller_id="1")):
                raise RuntimeError("boom")
        assert current_call_context() is None

    def test_nested_contexts_restore_outer(self):
        outer = CallContext(caller_id="outer")
        with call_context(outer):
            with call_context(CallContext(caller_id="inner")):
                assert current_call_context().caller_id == "inner"
            assert current_call_context() is outer

    def test_with_context_runs_function(self):
        result = with_context("7", "g1", lambda: current_call_context().caller_id)
        assert result == "7"
        assert current_call_context() is None

    def test_attach_pagination_latest_wins(self):
        context = CallContext(caller_id="1")
        assert context.pagination_id is None
        context.attach_pagination("first")
        context.attach_pagination("second")
        assert context.pagination_id == "second"

    def test_worker_thread_does_not_inherit_context(self):
        with call_context(CallContext(caller_id="1")):
            with ThreadPoolExecutor(max_workers=1) as pool:
                seen = pool.submit(current_call_context).result()
        assert seen is None

    @pytest.mark.asyncio
    async def test_concurrent_tasks_see_their_own_context(self):
        async def run(caller_id):
            with call_context(CallContext(caller_id=caller_id)):
                await asyncio.sleep(0.01)
                return current_call_context().caller_id

        results = await asyncio.gather(run("a"), run("b"), run("c"))
        assert results == ["a", "b", "c"]
