"""
LLM Orchestration Layer.

Manages the conversation with an OpenAI-compatible model endpoint (via
LiteLLM): system prompt construction, bounded per-channel memory, the
tool-use loop with loop guarding, and reasoning capture.

    Discord message  →  AgentOrchestrator.generate(utterance, caller, channel)
                                        ↓
                                GenerationOutcome  →  reply, pagination, thought DMs

Key responsibilities:
- Rebuild the model client when the operator changes endpoint or model
- Make the caller's identity visible to tools for exactly one call
- Abort runaway tool use (too many calls, or the same call repeated)
- Keep reasoning out of the public answer and hand it back separately
"""

from bobbot.llm.context import CallContext, current_call_context, with_context
from bobbot.llm.models import (
    GenerationOutcome,
    GenerationStatus,
    LLMError,
    LoopDetected,
    TokenUsage,
    ToolCall,
)
from bobbot.llm.orchestrator import AgentOrchestrator

__all__ = [
    "AgentOrchestrator",
    "CallContext",
    "GenerationOutcome",
    "GenerationStatus",
    "LLMError",
    "LoopDetected",
    "TokenUsage",
    "ToolCall",
    "current_call_context",
    "with_context",
]
