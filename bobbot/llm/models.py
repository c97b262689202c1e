"""
Data models and errors for the agent orchestration layer.

GenerationOutcome is the only thing the orchestrator ever hands back to the
chat layer: every exit path (success, loop abort, provider failure,
cancellation, missing configuration) produces one.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class LLMError(Exception):
    """Base error for the model layer. Carries the underlying cause when there is one."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class LoopDetected(LLMError):
    """Raised when a generation call exceeds its tool-usage ceilings."""

    def __init__(self, message: str, signature: tuple[str, str] | None = None):
        super().__init__(message)
        self.signature = signature


class GenerationStatus(str, Enum):
    """How a generation call ended."""

    COMPLETED = "completed"
    MISCONFIGURED = "misconfigured"
    LOOP_ABORTED = "loop_aborted"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TokenUsage(BaseModel):
    """Token counts summed over every model round trip of one call."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @computed_field
    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class ToolCall(BaseModel):
    """One executed tool invocation within a generation call."""

    sequence: int = Field(ge=1, description="1-based position within the call")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: str = ""


class GenerationOutcome(BaseModel):
    """Result of one generation call. Immutable."""

    reasoning: str = Field(default="", description="Private reasoning, never shown publicly")
    content: str = Field(description="Answer text safe to show in the conversation")
    pagination_id: str | None = Field(
        default=None, description="Paged session opened by a tool during the call"
    )
    status: GenerationStatus = GenerationStatus.COMPLETED
    tool_calls: list[ToolCall] = Field(default_factory=list)
    model: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)

    model_config = ConfigDict(frozen=True)
