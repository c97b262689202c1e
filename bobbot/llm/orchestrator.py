"""
Agent Orchestrator - turns one user utterance into a GenerationOutcome.

This module sits between the Discord layer and the model endpoint. It
receives an utterance plus the caller's identity, builds the system prompt
from live context, runs the chat-completion tool-use loop, and returns a
structured outcome the chat layer can always send.

Data flow:
    Discord message → AgentOrchestrator.generate()
                            ↓
        CallContext installed, conversation turn lock held
                            ↓
        ModelClient.complete()  ←→  ToolAdapter.call()   (LoopGuard checks
                            ↓                             every requested call;
        ReasoningCollector drained, <think> stripped      ReasoningCollector
                            ↓                             traces it)
        GenerationOutcome → Discord layer (reply, pagination, thought DMs)

Design decisions:
- The endpoint URL and model are read from the runtime settings store on
  every call. The model client is rebuilt only when that pair changes.
- Tool errors are passed back to the model as text, not raised, so it can
  recover in natural language. LoopGuard bounds how long it may try.
- Nothing raises past generate(): configuration gaps, loop aborts, provider
  errors and cancellation each map to their own GenerationStatus and a
  user-safe message.
- Every piece of per-call state (guard counters, reasoning buffer, call
  context) is created fresh for the call and owned by it, so concurrent
  calls for different utterances never share state.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bobbot.config.settings import AgentSettings, LLMSettings
from bobbot.llm.client import ModelClient
from bobbot.llm.context import CallContext, call_context
from bobbot.llm.loop_guard import LoopGuard
from bobbot.llm.memory import ConversationStore
from bobbot.llm.models import (
    GenerationOutcome,
    GenerationStatus,
    LLMError,
    LoopDetected,
    TokenUsage,
    ToolCall,
)
from bobbot.llm.prompts import (
    PromptFacts,
    build_system_prompt,
    build_user_message,
    load_personality,
)
from bobbot.llm.reasoning import ReasoningCollector, strip_reasoning
from bobbot.services.admin import AdminPolicy
from bobbot.services.pagination import PaginationService
from bobbot.services.thoughts import ThoughtCache, ThoughtCacheEntry
from bobbot.storage import JsonStorage

if TYPE_CHECKING:
    from bobbot.tools.base import ToolAdapter

logger = logging.getLogger(__name__)

MISSING_URL_MESSAGE = "AI URL is not configured. Use /ai url to set it up."
MISSING_MODEL_MESSAGE = "AI model is not configured. Use /ai model to set it up."
EMPTY_PROMPT_MESSAGE = "You'll have to say something first, mate."
LOOP_MESSAGE = (
    "I'm trying to do too many things at once! I got stuck in a loop trying to find "
    "that for you. Maybe try being a bit more specific or check your spelling, mate."
)
TRANSPORT_FAILURE_MESSAGE = (
    "I'm sorry, but something went wrong while I was thinking. "
    "Blame it on the server lag and try again in a bit."
)
CANCELLED_MESSAGE = "I was interrupted while thinking. Blame it on a world dc."
SPEECHLESS_MESSAGE = (
    "I've thought about it, but I'm not sure how to put it into words. "
    "Could you try asking in a different way?"
)
NO_CONTENT_MESSAGE = "I'm not sure how to respond to that. (Model returned no content)"

FactsResolver = Callable[[str, str, str | None], "PromptFacts | Awaitable[PromptFacts]"]


def _as_int(value: Any) -> int:
    return value if isinstance(value, int) else 0


def truncate_for_display(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class AgentOrchestrator:
    """
    Runs generation calls for the chat bot.

    Long-lived: one instance serves every conversation. It owns the
    conversation memories and the thought cache; everything else is
    per-call.

    Args:
        storage: Runtime settings store (endpoint URL, model, admins)
        llm_settings: Transport settings passed to every ModelClient
        agent_settings: Loop ceilings, memory window, display limits
        tool_adapter: Tools the model may call (None disables tool use)
        pagination: Paged session store, used to finish sessions tools open
        thoughts: Reasoning cache for on-demand lookup
        admin_policy: Admin predicate gating on-demand reasoning
        facts_resolver: Returns live PromptFacts for (caller, conversation, community)
        data_dir: Where personality.txt is looked up (defaults to storage.data_dir)
    """

    def __init__(
        self,
        storage: JsonStorage,
        llm_settings: LLMSettings | None = None,
        agent_settings: AgentSettings | None = None,
        tool_adapter: ToolAdapter | None = None,
        pagination: PaginationService | None = None,
        thoughts: ThoughtCache | None = None,
        admin_policy: AdminPolicy | None = None,
        facts_resolver: FactsResolver | None = None,
        data_dir: Path | str | None = None,
    ):
        self._storage = storage
        self._llm_settings = llm_settings or LLMSettings()
        self._agent_settings = agent_settings or AgentSettings()
        self._tool_adapter = tool_adapter
        self._pagination = pagination
        self._thoughts = (
            thoughts if thoughts is not None
            else ThoughtCache(self._agent_settings.thought_cache_size)
        )
        self._admin_policy = admin_policy
        self._facts_resolver = facts_resolver
        self._data_dir = Path(data_dir) if data_dir is not None else storage.data_dir
        self._conversations = ConversationStore(self._agent_settings.memory_window)
        self._client: ModelClient | None = None

    @property
    def conversations(self) -> ConversationStore:
        return self._conversations

    @property
    def thoughts(self) -> ThoughtCache:
        return self._thoughts

    @property
    def tool_adapter(self) -> ToolAdapter | None:
        return self._tool_adapter

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def _get_client(self, url: str, model: str) -> ModelClient:
        """Return the cached client, rebuilding it if the configuration changed."""
        if self._client is None or not self._client.matches(url, model):
            self._client = ModelClient(url, model, self._llm_settings)
            logger.info(f"Built model client for {self._client.base_url} (model: {model})")
        return self._client

    async def _get_tool_definitions(self) -> list[dict[str, Any]] | None:
        """
        Fetch tool schemas from the adapter in LiteLLM's expected format.

        LiteLLM uses the OpenAI tool format:
            {"type": "function", "function": {"name": ..., "description": ..., "parameters": ...}}

        Returns None if no tool adapter is configured or it exposes no tools.
        """
        if self._tool_adapter is None:
            return None

        raw_tools = await self._tool_adapter.list_tools()
        if not raw_tools:
            return None
        return [
            {
                "type": "function",
                "function": {
                    "name": tool["name"],
                    "description": tool["description"],
                    "parameters": tool["input_schema"],
                },
            }
            for tool in raw_tools
        ]

    async def _resolve_facts(
        self, caller_id: str, conversation_id: str, community_id: str | None
    ) -> PromptFacts:
        if self._facts_resolver is None:
            return PromptFacts()
        try:
            facts = self._facts_resolver(caller_id, conversation_id, community_id)
            if inspect.isawaitable(facts):
                facts = await facts
            return facts
        except Exception as e:
            logger.warning(f"Could not resolve prompt facts for {caller_id}: {e}")
            return PromptFacts()

    async def build_system_prompt(
        self, caller_id: str, conversation_id: str, community_id: str | None = None
    ) -> str:
        facts = await self._resolve_facts(caller_id, conversation_id, community_id)
        return build_system_prompt(facts, load_personality(self._data_dir))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        utterance: str,
        caller_id: str,
        conversation_id: str,
        community_id: str | None = None,
        reply_context: str | None = None,
    ) -> GenerationOutcome:
        """
        Generate a reply to one utterance.

        Never raises (cancellation included): every exit path produces a
        GenerationOutcome whose content can be sent to the user as-is.

        Args:
            utterance: What the user said
            caller_id: Discord user id of the speaker
            conversation_id: Conversation key (channel id)
            community_id: Guild id, or None in DMs
            reply_context: Text of the message being replied to, if any

        Returns:
            GenerationOutcome with reasoning, content and optional pagination id
        """
        runtime = self._storage.load_settings()
        if not runtime.ai_url or not runtime.ai_url.strip():
            return GenerationOutcome(
                content=MISSING_URL_MESSAGE, status=GenerationStatus.MISCONFIGURED
            )
        if not runtime.ai_model or not runtime.ai_model.strip():
            return GenerationOutcome(
                content=MISSING_MODEL_MESSAGE, status=GenerationStatus.MISCONFIGURED
            )
        if not utterance or not utterance.strip():
            return GenerationOutcome(content=EMPTY_PROMPT_MESSAGE)

        context = CallContext(
            caller_id=caller_id, community_id=community_id, channel_id=conversation_id
        )
        guard = LoopGuard(
            self._agent_settings.max_total_tool_calls,
            self._agent_settings.max_calls_per_signature,
        )
        collector = ReasoningCollector()
        recorded_tool_calls: list[ToolCall] = []
        usage = TokenUsage()
        memory = self._conversations.get_or_create(conversation_id)

        with call_context(context):
            try:
                async with memory.turn_lock:
                    client = self._get_client(runtime.ai_url, runtime.ai_model.strip())
                    system_prompt = await self.build_system_prompt(
                        caller_id, conversation_id, community_id
                    )
                    turn: list[dict[str, Any]] = [
                        {"role": "user", "content": build_user_message(utterance, reply_context)}
                    ]
                    text, model_name, usage = await self._run_tool_loop(
                        client,
                        [{"role": "system", "content": system_prompt}, *memory.messages()],
                        turn,
                        context,
                        guard,
                        collector,
                        recorded_tool_calls,
                    )
                    content = strip_reasoning(text)
                    turn.append({"role": "assistant", "content": content})
                    memory.extend(turn)
            except LoopDetected as e:
                reasoning = collector.drain()
                logger.warning(
                    f"Loop detection triggered: {e}. Thinking length: {len(reasoning)}"
                )
                return GenerationOutcome(
                    reasoning=reasoning,
                    content=LOOP_MESSAGE,
                    status=GenerationStatus.LOOP_ABORTED,
                    tool_calls=recorded_tool_calls,
                )
            except asyncio.CancelledError:
                logger.warning(f"Generation for {caller_id} in {conversation_id} was cancelled")
                return GenerationOutcome(
                    reasoning=collector.drain(),
                    content=CANCELLED_MESSAGE,
                    status=GenerationStatus.CANCELLED,
                    tool_calls=recorded_tool_calls,
                )
            except Exception as e:
                reasoning = collector.drain()
                logger.error(f"AI generation failed: {e}", exc_info=True)
                return GenerationOutcome(
                    reasoning=reasoning,
                    content=TRANSPORT_FAILURE_MESSAGE,
                    status=GenerationStatus.FAILED,
                    tool_calls=recorded_tool_calls,
                )

        reasoning = collector.drain()
        if not content and reasoning:
            content = SPEECHLESS_MESSAGE
        elif not content:
            content = NO_CONTENT_MESSAGE
        content = truncate_for_display(content, self._agent_settings.max_display_chars)

        pagination_id = context.pagination_id
        if pagination_id and self._pagination is not None:
            self._pagination.update_response(pagination_id, content)

        return GenerationOutcome(
            reasoning=reasoning,
            content=content,
            pagination_id=pagination_id,
            tool_calls=recorded_tool_calls,
            model=model_name,
            usage=usage,
        )

    async def _run_tool_loop(
        self,
        client: ModelClient,
        messages: list[dict[str, Any]],
        turn: list[dict[str, Any]],
        context: CallContext,
        guard: LoopGuard,
        collector: ReasoningCollector,
        recorded_tool_calls: list[ToolCall],
    ) -> tuple[str, str, TokenUsage]:
        """
        Call the model until it answers without requesting tools.

        ``turn`` collects this turn's messages (user, assistant tool requests,
        tool results) for the conversation memory; ``messages`` is the history
        sent to the model and grows with them.

        Returns:
            (raw final text, model name, summed token usage)

        Raises:
            LoopDetected: If the guard trips on a requested tool call
            LLMError: If the model endpoint call fails
        """
        tool_definitions = await self._get_tool_definitions()
        prompt_tokens = 0
        completion_tokens = 0
        model_name = client.model

        # The model may respond with tool calls instead of text. When it
        # does, each call is checked against the guard, executed, and its
        # result appended before asking the model again.
        while True:
            try:
                response = await client.complete([*messages, *turn], tools=tool_definitions)
            except Exception as e:
                collector.add_model_error(str(e))
                raise LLMError(f"LLM API call failed: {e}", cause=e) from e

            response_usage = getattr(response, "usage", None)
            if response_usage is not None:
                prompt_tokens += _as_int(getattr(response_usage, "prompt_tokens", 0))
                completion_tokens += _as_int(getattr(response_usage, "completion_tokens", 0))
            if isinstance(getattr(response, "model", None), str):
                model_name = response.model

            assistant_message = response.choices[0].message
            collector.add_structured(client.maybe_reasoning(assistant_message))
            content = assistant_message.content if isinstance(assistant_message.content, str) else ""
            requested = list(assistant_message.tool_calls or [])

            if not requested or self._tool_adapter is None:
                collector.add_inline(content)
                usage = TokenUsage(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
                return content, model_name, usage

            # Guard every requested call before running any of them
            planned: list[tuple[int, str, str, str]] = []
            for tool_call in requested:
                name = tool_call.function.name or "unknown"
                raw_arguments = tool_call.function.arguments or ""
                sequence = guard.check(name, raw_arguments)
                collector.add_tool_call(name, raw_arguments)
                call_id = tool_call.id or f"call_{sequence}"
                planned.append((sequence, call_id, name, raw_arguments))
            collector.add_inline(content)

            turn.append({
                "role": "assistant",
                "content": strip_reasoning(content) or None,
                "tool_calls": [
                    {
                        "id": call_id,
                        "type": "function",
                        "function": {"name": name, "arguments": raw_arguments},
                    }
                    for _, call_id, name, raw_arguments in planned
                ],
            })

            for sequence, call_id, name, raw_arguments in planned:
                arguments, result_text = self._parse_arguments(name, raw_arguments)
                if result_text is None:
                    try:
                        result_text = await self._tool_adapter.call(name, arguments, context)
                    except Exception as e:
                        logger.warning(f"Tool '{name}' failed: {e}")
                        result_text = f"Error: Tool '{name}' failed: {e}"
                collector.add_tool_result(name, result_text)
                recorded_tool_calls.append(
                    ToolCall(sequence=sequence, name=name, arguments=arguments, result=result_text)
                )
                turn.append({"role": "tool", "tool_call_id": call_id, "content": result_text})

    @staticmethod
    def _parse_arguments(name: str, raw_arguments: str) -> tuple[dict[str, Any], str | None]:
        """
        Decode a tool call's JSON arguments.

        Returns:
            (arguments, None) on success, or ({}, error text) when the model
            sent something that is not a JSON object
        """
        if not raw_arguments.strip():
            return {}, None
        try:
            arguments = json.loads(raw_arguments)
        except ValueError as e:
            logger.warning(f"Tool '{name}' called with malformed arguments: {raw_arguments!r}")
            return {}, f"Error: Arguments for tool '{name}' are not valid JSON: {e}"
        if not isinstance(arguments, dict):
            return {}, f"Error: Arguments for tool '{name}' must be a JSON object."
        return arguments, None

    # ------------------------------------------------------------------
    # Thought cache
    # ------------------------------------------------------------------

    def remember_reasoning(
        self, message_id: str, prompt: str, reasoning: str, author_id: str
    ) -> None:
        """Cache reasoning under the id of the message that displayed the answer."""
        self._thoughts.put(message_id, prompt, reasoning, author_id)

    def get_cached_reasoning(
        self, message_id: str, requester_id: str
    ) -> ThoughtCacheEntry | None:
        """
        Cached reasoning for a displayed answer.

        Only the user who asked the original question, or an admin, may see
        it; anyone else gets None, exactly as if nothing were cached.
        """
        entry = self._thoughts.get(message_id)
        if entry is None:
            return None
        if requester_id == entry.author_id:
            return entry
        if self._admin_policy is not None and self._admin_policy.is_admin(requester_id):
            return entry
        logger.info(f"User {requester_id} denied cached reasoning for message {message_id}")
        return None
