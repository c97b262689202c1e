"""
Base classes for tools.

Provides the abstract adapter interface the orchestrator talks to, and the
descriptor used to register a single tool.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bobbot.llm.context import CallContext


class ToolDescriptor(BaseModel):
    """
    A model-invocable tool.

    The handler is called with the tool's arguments as keyword arguments and
    must return text. It may read the ambient CallContext
    (bobbot.llm.context.current_call_context) but never receives it as a
    parameter.

    Example:
        >>> ToolDescriptor(
        ...     name="echo",
        ...     description="Repeat the input back",
        ...     parameters={
        ...         "type": "object",
        ...         "properties": {"x": {"type": "string"}},
        ...         "required": ["x"],
        ...     },
        ...     handler=lambda x: x,
        ... )
    """

    name: str = Field(min_length=1, pattern=r"^[a-zA-Z0-9_-]{1,64}$")
    description: str = Field(min_length=1)
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON schema of the arguments object",
    )
    handler: Callable[..., str]

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator("parameters")
    @classmethod
    def _must_be_object_schema(cls, value: dict[str, Any]) -> dict[str, Any]:
        if value.get("type") != "object":
            raise ValueError("Tool parameters must be a JSON schema of type 'object'")
        return value


class ToolAdapter(ABC):
    """
    Abstract base class for tool adapters.

    Tool adapters provide a uniform interface for calling tools, however they
    are implemented. The orchestrator only ever sees this interface.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Initialize the tool adapter.

        This may involve starting worker pools or establishing connections.
        """
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """
        Cleanly shut down the tool adapter and release its resources.
        """
        pass

    @abstractmethod
    async def call(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        context: CallContext | None = None,
    ) -> str:
        """
        Call a tool with the given arguments.

        Args:
            tool_name: Name of the tool to invoke
            arguments: Tool-specific arguments
            context: Identity of the generation call, installed for the tool

        Returns:
            Tool result text. Failures are returned as text, never raised.
        """
        pass

    @abstractmethod
    async def list_tools(self) -> list[dict[str, Any]]:
        """
        List all available tools from this adapter.

        Returns:
            List of tool schemas. Each schema includes name, description, and
            input schema.

        Example:
            [
                {
                    "name": "display_paginated_report",
                    "description": "Display a long list in a paginated view",
                    "input_schema": {
                        "type": "object",
                        "properties": {
                            "title": {"type": "string"},
                            "items": {"type": "array", "items": {"type": "string"}}
                        },
                        "required": ["title", "items"]
                    }
                }
            ]
        """
        pass

    async def __aenter__(self):
        """Context manager entry - initialize the adapter."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - shutdown the adapter."""
        await self.shutdown()
        return False
