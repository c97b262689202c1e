"""
Reasoning capture and removal.

Providers expose a model's intermediate reasoning in one of two ways: as a
separate structured field on the response message, or inline in the content
wrapped in <think>...</think>. The ReasoningCollector gathers both, plus a
trace of every tool call and result, for one generation call. The helpers
here also strip the inline form from the answer so reasoning never reaches
the public conversation.
"""

from __future__ import annotations

import re

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

# Closed spans, or an opening tag that runs to the end of the text.
_THINK_SPAN_RE = re.compile(r"<think>(.*?)(?:</think>|\Z)", re.DOTALL)


def _split_dangling_prefix(text: str) -> tuple[str | None, str]:
    """
    Handle templates that emit only the closing tag.

    Some chat templates put the opening <think> in the prompt, so the
    completion starts with reasoning and contains a lone </think>.
    """
    close = text.find(THINK_CLOSE)
    if close == -1:
        return None, text
    open_ = text.find(THINK_OPEN)
    if open_ != -1 and open_ < close:
        return None, text
    return text[:close], text[close + len(THINK_CLOSE):]


def extract_reasoning(text: str | None) -> list[str]:
    """Return the non-empty reasoning spans found in ``text``, in order."""
    if not text:
        return []
    spans: list[str] = []
    prefix, rest = _split_dangling_prefix(text)
    if prefix is not None and prefix.strip():
        spans.append(prefix.strip())
    for match in _THINK_SPAN_RE.finditer(rest):
        span = match.group(1).strip()
        if span:
            spans.append(span)
    return spans


def strip_reasoning(text: str | None) -> str:
    """Remove every reasoning span from ``text`` and trim the result."""
    if not text:
        return ""
    _, rest = _split_dangling_prefix(text)
    return _THINK_SPAN_RE.sub("", rest).strip()


class ReasoningCollector:
    """
    Accumulates reasoning fragments for one generation call.

    One collector is created per call and owned by that call only, so
    concurrent calls never share a buffer. Fragments are kept in observation
    order and drained as one fragment per line.
    """

    def __init__(self) -> None:
        self._fragments: list[str] = []

    def __len__(self) -> int:
        return len(self._fragments)

    def reset(self) -> None:
        self._fragments.clear()

    def add(self, fragment: str | None) -> None:
        if fragment is None:
            return
        fragment = fragment.strip()
        if fragment:
            self._fragments.append(fragment)

    def add_structured(self, reasoning: str | None) -> None:
        """Record a provider's structured reasoning field."""
        self.add(reasoning)

    def add_inline(self, content: str | None) -> None:
        """Record any <think> spans embedded in response content."""
        for span in extract_reasoning(content):
            self.add(span)

    def add_tool_call(self, name: str, arguments: str) -> None:
        self.add(f"[Tool Call] {name} with args: {arguments}")

    def add_tool_result(self, name: str, result: str) -> None:
        self.add(f"[Tool Result] {name}: {result}")

    def add_model_error(self, message: str) -> None:
        self.add(f"[Model Error] {message}")

    def snapshot(self) -> str:
        return "\n".join(self._fragments)

    def drain(self) -> str:
        """Return everything collected so far and empty the collector."""
        text = self.snapshot()
        self._fragments.clear()
        return text
