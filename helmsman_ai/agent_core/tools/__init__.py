"""Tool registration and execution.

- ``AgentToolRegistration``: name -> handler descriptor with schema and timeout.
- ``ToolExecutor``: registry plus deadline-bound execution producing ``AgentToolInvocation`` records.
- ``ToolContext``: identity, cancellation signal and event hook passed to handlers.
"""

from .base import AgentToolRegistration, EventEmitter, ToolContext, ToolHandler
from .executor import DEFAULT_ABORT_GRACE_MS, DEFAULT_TOOL_TIMEOUT_MS, ToolExecutor

__all__ = [
    "AgentToolRegistration",
    "EventEmitter",
    "ToolContext",
    "ToolHandler",
    "ToolExecutor",
    "DEFAULT_ABORT_GRACE_MS",
    "DEFAULT_TOOL_TIMEOUT_MS",
]
