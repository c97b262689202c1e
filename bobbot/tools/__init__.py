"""
Tool Integration Layer.

Tools are synchronous callables the model may invoke mid-generation. They are
registered once at startup in a ToolRegistry, which exposes them to the
orchestrator through the async ToolAdapter interface.
"""

from bobbot.tools.base import ToolAdapter, ToolDescriptor
from bobbot.tools.registry import ToolRegistry

__all__ = ["ToolAdapter", "ToolDescriptor", "ToolRegistry"]
