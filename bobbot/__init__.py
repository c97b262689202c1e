"""
BobBot - Discord chat bot with a tool-using LLM agent.

This package provides the agent orchestration runtime (conversation memory,
tool dispatch, loop guarding, reasoning capture, pagination and thought
caching) plus the thin Discord layer that drives it.
"""

__version__ = "0.1.0"
