"""
Tool-usage ceilings for a single generation call.

Two independent counters, both reset at the start of every call:

- total calls: the model is doing too much;
- calls per signature (tool name + normalized arguments): the model is
  repeating the same thing, usually something that already failed.

Either ceiling being exceeded raises LoopDetected before the offending tool
runs, so a counter never exceeds its ceiling by more than the one call that
tripped it.
"""

from __future__ import annotations

import json
from collections import Counter

from bobbot.llm.models import LoopDetected


def normalize_arguments(raw_arguments: str | None) -> str:
    """
    Canonical form of a tool-call argument string.

    JSON objects are re-serialized with sorted keys and compact separators so
    ``{"b": 1, "a": 2}`` and ``{"a":2,"b":1}`` count as the same signature.
    Anything that is not valid JSON is compared verbatim (stripped).
    """
    text = (raw_arguments or "").strip()
    if not text:
        return ""
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    return json.dumps(parsed, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class LoopGuard:
    """
    Counts tool invocations and aborts runaway calls.

    Args:
        max_total_calls: Calls allowed per generation call (default 5)
        max_calls_per_signature: Identical calls allowed per generation call (default 2)
    """

    def __init__(self, max_total_calls: int = 5, max_calls_per_signature: int = 2):
        if max_total_calls < 1 or max_calls_per_signature < 1:
            raise ValueError("Loop guard ceilings must be at least 1")
        self.max_total_calls = max_total_calls
        self.max_calls_per_signature = max_calls_per_signature
        self.total_calls = 0
        self.per_signature_calls: Counter[tuple[str, str]] = Counter()

    def reset(self) -> None:
        self.total_calls = 0
        self.per_signature_calls.clear()

    def check(self, tool_name: str | None, raw_arguments: str | None) -> int:
        """
        Register one requested tool call.

        Returns:
            The 1-based sequence number of the call within this generation

        Raises:
            LoopDetected: If either ceiling is exceeded
        """
        self.total_calls += 1
        if self.total_calls > self.max_total_calls:
            raise LoopDetected(
                f"Too many tool calls in one answer ({self.max_total_calls} allowed)"
            )

        signature = (tool_name or "unknown", normalize_arguments(raw_arguments))
        self.per_signature_calls[signature] += 1
        if self.per_signature_calls[signature] > self.max_calls_per_signature:
            raise LoopDetected(
                f"Repetitive tool call: {signature[0]}:{signature[1]}",
                signature=signature,
            )
        return self.total_calls
