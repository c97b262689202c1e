"""
Model client for OpenAI-compatible chat-completion endpoints.

A ModelClient is bound to one (base URL, model) pair. The orchestrator keeps
one alive and builds a new one whenever the operator changes either value, so
a stale client is never reused with old settings.

LiteLLM does the transport; the ``openai/`` model prefix routes the request
to an OpenAI-style endpoint at ``api_base``.
"""

from __future__ import annotations

import logging
from typing import Any

from litellm import acompletion

from bobbot.config.settings import LLMSettings

logger = logging.getLogger(__name__)


def build_base_url(url: str) -> str:
    """
    Normalize an operator-supplied endpoint URL to a ``.../v1`` base.

    Examples:
        >>> build_base_url("localhost:1234")
        'http://localhost:1234/v1'
        >>> build_base_url("http://host/v1/chat/completions")
        'http://host/v1'
        >>> build_base_url("https://host/v1/")
        'https://host/v1'
    """
    base = url.strip()
    if not base.startswith(("http://", "https://")):
        logger.info(f"AI URL '{base}' missing scheme, prepending http://")
        base = "http://" + base
    if base.endswith("/v1/chat/completions"):
        return base[: -len("/chat/completions")]
    if base.endswith("/v1/"):
        return base[:-1]
    if base.endswith("/v1"):
        return base
    return base + ("v1" if base.endswith("/") else "/v1")


class ModelClient:
    """
    Thin async wrapper over ``litellm.acompletion`` for one endpoint and model.

    Args:
        base_url: Endpoint URL as configured by the operator (normalized here)
        model: Model name served by the endpoint
        settings: Transport settings (api key, timeout, sampling)
    """

    def __init__(self, base_url: str, model: str, settings: LLMSettings):
        self.base_url = build_base_url(base_url)
        self.model = model
        self._settings = settings

    @property
    def routed_model(self) -> str:
        return self.model if self.model.startswith("openai/") else f"openai/{self.model}"

    def matches(self, base_url: str, model: str) -> bool:
        """True if this client was built for the given configuration."""
        return self.base_url == build_base_url(base_url) and self.model == model

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> Any:
        """Send one chat-completion request and return the raw LiteLLM response."""
        call_kwargs: dict[str, Any] = {
            "model": self.routed_model,
            "messages": messages,
            "api_base": self.base_url,
            "api_key": self._settings.api_key,
            "timeout": self._settings.timeout_seconds,
        }
        if self._settings.temperature is not None:
            call_kwargs["temperature"] = self._settings.temperature
        if self._settings.max_tokens is not None:
            call_kwargs["max_tokens"] = self._settings.max_tokens
        if tools:
            call_kwargs["tools"] = tools
        return await acompletion(**call_kwargs)

    @staticmethod
    def maybe_reasoning(message: Any) -> str | None:
        """
        Structured reasoning exposed by the provider, if any.

        LiteLLM normalizes provider-specific fields (``reasoning_content`` on
        DeepSeek/Qwen style servers, ``reasoning`` on some others) onto the
        response message; only real, non-blank strings count.
        """
        for attr in ("reasoning_content", "reasoning"):
            value = getattr(message, attr, None)
            if isinstance(value, str) and value.strip():
                return value
        return None
