"""
In-process tool registry and dispatch.

Tools are plain synchronous functions (they typically make blocking HTTP
calls), so the registry runs them on its own thread pool to keep the event
loop free. Thread pools do not carry the caller's ContextVars, so ``call``
installs the generation's CallContext inside the worker explicitly before
invoking the handler.

Dispatch is the failure boundary: an unknown tool, bad arguments, or any
exception raised by a handler becomes an ``Error: ...`` string the model can
read and recover from.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from bobbot.llm.context import CallContext, call_context
from bobbot.tools.base import ToolAdapter, ToolDescriptor

logger = logging.getLogger(__name__)


class ToolRegistry(ToolAdapter):
    """
    Registry of ToolDescriptors, dispatched by name.

    Args:
        max_workers: Threads available for running tool handlers
    """

    def __init__(self, max_workers: int = 4):
        self._tools: dict[str, ToolDescriptor] = {}
        self._lock = threading.Lock()
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    @property
    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._tools)

    def register(self, descriptor: ToolDescriptor) -> None:
        """
        Add a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        with self._lock:
            if descriptor.name in self._tools:
                raise ValueError(f"Tool '{descriptor.name}' is already registered")
            self._tools[descriptor.name] = descriptor
        logger.debug(f"Registered tool {descriptor.name!r}")

    def register_all(self, descriptors: list[ToolDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """
        Run a tool synchronously in the current thread.

        Never raises: every failure is converted into descriptive text.
        """
        with self._lock:
            descriptor = self._tools.get(name)
        if descriptor is None:
            available = ", ".join(self.names) or "none"
            return f"Error: Unknown tool '{name}'. Available tools: {available}."
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return f"Error: Tool '{name}' expects an object of named arguments."

        try:
            signature = inspect.signature(descriptor.handler)
        except (TypeError, ValueError):
            signature = None
        try:
            if signature is not None:
                signature.bind(**arguments)
        except TypeError as e:
            logger.warning(f"Tool '{name}' called with bad arguments {arguments!r}: {e}")
            return f"Error: Tool '{name}' was called with invalid arguments: {e}"

        try:
            result = descriptor.handler(**arguments)
        except Exception as e:
            logger.warning(f"Tool '{name}' failed: {e}")
            logger.debug("Tool failure traceback", exc_info=True)
            return f"Error: Tool '{name}' failed: {e}"

        if result is None:
            return ""
        return result if isinstance(result, str) else str(result)

    # ------------------------------------------------------------------
    # ToolAdapter interface
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="bobbot-tool"
            )

    async def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    async def call(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        context: CallContext | None = None,
    ) -> str:
        if self._executor is None:
            await self.initialize()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self._invoke_in_context, context, tool_name, arguments
        )

    def _invoke_in_context(
        self, context: CallContext | None, tool_name: str, arguments: dict[str, Any]
    ) -> str:
        with call_context(context):
            return self.invoke(tool_name, arguments)

    async def list_tools(self) -> list[dict[str, Any]]:
        with self._lock:
            descriptors = list(self._tools.values())
        return [
            {
                "name": d.name,
                "description": d.description,
                "input_schema": d.parameters,
            }
            for d in descriptors
        ]
