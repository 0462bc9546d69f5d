from __future__ import annotations

"""Tool handler contract and execution context.

A tool handler is any callable ``(args, ctx) -> result``. Async handlers run as
tasks and are cancelled on timeout; plain functions run in a worker thread so
the deadline still applies to them.

Handlers receive a ``ToolContext`` with the identity of the run that invoked
them, an ``emit`` hook for lifecycle events, and a ``signal`` event that is set
when the executor aborts the call. Handlers doing cooperative or threaded work
should check ``ctx.signal.is_set()`` and stop early.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..schemas.messages import ToolDefinition

EventEmitter = Callable[[str, Any], Awaitable[None]]
ToolHandler = Callable[[Any, "ToolContext"], Union[Any, Awaitable[Any]]]


async def _noop_emit(_event: str, _payload: Any) -> None:
    return None


@dataclass(frozen=True)
class ToolContext:
    """Execution context passed to tool handlers.

    Attributes
    ----------
    agent_id:
        Name of the agent whose run issued the call.
    session_id:
        The session the call belongs to.
    tenant_id / actor_id:
        Optional tenancy scope and the user driving the run.
    tool_call_id:
        Provider-assigned id of the call being executed.
    metadata:
        Request metadata forwarded from ``AgentRunRequest``.
    signal:
        Set when the executor aborts the call after its deadline.
    emit:
        Async event sink shared with the runner.
    """

    agent_id: str
    session_id: str
    tenant_id: Optional[str] = None
    actor_id: Optional[str] = None
    tool_call_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    signal: asyncio.Event = field(default_factory=asyncio.Event)
    emit: EventEmitter = _noop_emit


@dataclass(frozen=True)
class AgentToolRegistration:
    """Handler descriptor registered with the ``ToolExecutor``."""

    name: str
    handler: ToolHandler
    description: str = ""
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    timeout_ms: Optional[int] = None

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(name=self.name, description=self.description, parameters=dict(self.parameters))
