"""Tool registration and deadline-bound execution.

``ToolExecutor`` owns the name -> handler table the runner dispatches through.
Dispatch is never reflective: a call to an unknown name fails with
``ToolNotRegisteredError`` before anything runs.

Every ``execute`` call produces exactly one sealed ``AgentToolInvocation``:

- the handler returns within its deadline -> ``success=True``;
- the deadline passes -> the handler is aborted, given a short grace period to
  observe cancellation, and the invocation is returned with ``success=False``
  and ``timed_out=True``;
- the handler raises -> the invocation is sealed with ``success=False`` and a
  ``ToolExecutionError`` carrying it is raised.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from helmsman_ai.core.logging_config import get_logger
from helmsman_ai.core.monitoring import log_tool_invocation

from ..errors import ToolExecutionError, ToolNotRegisteredError
from ..schemas.domain import AgentToolInvocation
from ..schemas.messages import ToolDefinition
from .base import AgentToolRegistration, ToolContext, ToolHandler

logger = get_logger(__name__)

DEFAULT_TOOL_TIMEOUT_MS = 10_000
DEFAULT_ABORT_GRACE_MS = 250


def _drain(task: "asyncio.Future[Any]") -> None:
    # Consume the outcome of an abandoned handler so asyncio does not warn about it.
    if not task.cancelled():
        task.exception()


class ToolExecutor:
    """
    Registry and executor for tool handlers.

    Notes:
        - ``register`` overwrites any existing handler with the same name.
        - ``list_exposed_tools`` only returns tools named in the allow-list, in its order.
    """

    def __init__(
        self,
        *,
        default_timeout_ms: int = DEFAULT_TOOL_TIMEOUT_MS,
        abort_grace_ms: int = DEFAULT_ABORT_GRACE_MS,
    ) -> None:
        """
        Initialize an empty executor.

        Args:
            default_timeout_ms: Deadline for handlers that do not declare one.
            abort_grace_ms: Time to wait after aborting a handler before returning.
        """
        self._tools: Dict[str, AgentToolRegistration] = {}
        self._default_timeout_ms = default_timeout_ms
        self._abort_grace_ms = abort_grace_ms

    def register(
        self,
        tool: AgentToolRegistration | str,
        handler: Optional[ToolHandler] = None,
        **options: Any,
    ) -> AgentToolRegistration:
        """
        Register a tool handler.

        Accepts either a prepared ``AgentToolRegistration`` or a name plus handler
        and registration options (``description``, ``parameters``, ``timeout_ms``).
        """
        if isinstance(tool, str):
            if handler is None:
                raise ValueError(f"handler is required to register tool '{tool}'")
            tool = AgentToolRegistration(name=tool, handler=handler, **options)
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool handler: {tool.name}")
        return tool

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> AgentToolRegistration:
        try:
            return self._tools[name]
        except KeyError as e:
            raise ToolNotRegisteredError(name) from e

    def list_exposed_tools(self, allowed: Optional[Iterable[str]] = None) -> List[ToolDefinition]:
        """
        List tool definitions to expose to the model.

        Args:
            allowed: Optional allow-list of tool names, e.g. the agent's declared tools.
                Names without a registered handler are skipped.

        Returns:
            Tool definitions in allow-list order, or registration order when no list is given.
        """
        if allowed is None:
            return [t.to_definition() for t in self._tools.values()]
        return [self._tools[name].to_definition() for name in allowed if name in self._tools]

    async def execute(
        self,
        name: str,
        args: Any,
        ctx: ToolContext,
        *,
        timeout_ms: Optional[int] = None,
    ) -> Tuple[AgentToolInvocation, Any]:
        """
        Run a registered tool under its deadline.

        Args:
            name: The tool name.
            args: Parsed arguments (or the raw payload when it was not valid JSON).
            ctx: Execution context forwarded to the handler.
            timeout_ms: Per-call deadline; overrides the registration and the executor default.

        Returns:
            ``(invocation, result)``. ``result`` is None when the call timed out.

        Raises:
            ToolNotRegisteredError: If no handler is registered for ``name``.
            ToolExecutionError: If the handler raised.
        """
        tool = self.get(name)
        deadline_ms = timeout_ms or tool.timeout_ms or self._default_timeout_ms
        if ctx.signal.is_set():
            ctx = replace(ctx, signal=asyncio.Event())

        started_at = datetime.now(timezone.utc)
        started = time.perf_counter()
        task = asyncio.ensure_future(self._invoke(tool.handler, args, ctx))

        def _seal(success: bool, error: Optional[str] = None, timed_out: bool = False) -> AgentToolInvocation:
            duration_ms = (time.perf_counter() - started) * 1000.0
            invocation = AgentToolInvocation(
                tool_call_id=ctx.tool_call_id,
                name=name,
                arguments=args,
                started_at=started_at,
                completed_at=datetime.now(timezone.utc),
                duration_ms=duration_ms,
                success=success,
                error=error,
                timed_out=timed_out,
            )
            log_tool_invocation(name, success, duration_ms, error)
            return invocation

        try:
            done, _pending = await asyncio.wait({task}, timeout=deadline_ms / 1000.0)
        except asyncio.CancelledError:
            ctx.signal.set()
            task.cancel()
            raise

        if task not in done:
            ctx.signal.set()
            task.cancel()
            task.add_done_callback(_drain)
            if self._abort_grace_ms > 0:
                await asyncio.wait({task}, timeout=self._abort_grace_ms / 1000.0)
            message = f"Tool '{name}' timed out after {deadline_ms} ms"
            logger.warning(message)
            return _seal(False, message, timed_out=True), None

        try:
            result = task.result()
        except asyncio.CancelledError as e:
            invocation = _seal(False, "handler was cancelled")
            raise ToolExecutionError(name, "handler was cancelled", invocation=invocation) from e
        except Exception as e:
            invocation = _seal(False, str(e) or type(e).__name__)
            logger.error(f"Tool '{name}' raised: {e}")
            raise ToolExecutionError(name, invocation.error or "", invocation=invocation) from e

        invocation = _seal(True)
        logger.debug(f"Tool '{name}' completed in {invocation.duration_ms:.1f} ms")
        return invocation, result

    @staticmethod
    async def _invoke(handler: ToolHandler, args: Any, ctx: ToolContext) -> Any:
        if inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(getattr(handler, "__call__", None)):
            return await handler(args, ctx)
        result = await asyncio.to_thread(handler, args, ctx)
        if inspect.isawaitable(result):
            return await result
        return result
