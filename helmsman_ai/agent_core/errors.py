"""Error types for the agent core.

Defines a small hierarchy of exceptions raised while defining agents, resolving
tools, driving the run loop, and resolving approvals.

- Construction errors fail before any run and are never retried.
- Preflight errors fail a run before the first model call.
- Execution errors propagate out of ``AgentRunner.run`` and leave the session at
  its last persisted state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from .schemas.domain import AgentToolInvocation


class AgentCoreError(Exception):
    """Base error for all agent core exceptions."""


class AgentSpecValidationError(AgentCoreError, ValueError):
    """Raised when an agent definition is invalid."""

    def __init__(self, message: str, *, errors: Optional[Sequence[Any]] = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])


class DuplicateToolError(AgentSpecValidationError):
    """Raised when two tools in one agent definition share a name."""


class AgentNotFoundError(AgentCoreError, LookupError):
    """Raised when no registered agent matches a name/version."""

    def __init__(self, name: str, version: Optional[str] = None) -> None:
        target = f"{name}@{version}" if version is not None else name
        super().__init__(f"Agent not found: '{target}'")
        self.name = name
        self.version = version


class ToolNotRegisteredError(AgentCoreError, LookupError):
    """Raised when a tool name has no registered handler."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool not registered: '{tool_name}'")
        self.tool_name = tool_name


class MissingToolHandlerError(AgentCoreError):
    """Raised before the first model call when a declared tool has no handler."""

    def __init__(self, agent: str, tool_name: str) -> None:
        super().__init__(f"Agent '{agent}' requires tool '{tool_name}' but it is not registered.")
        self.agent = agent
        self.tool_name = tool_name


class ToolExecutionError(AgentCoreError):
    """Raised when a tool handler fails; carries the sealed invocation record."""

    def __init__(self, tool_name: str, message: str, *, invocation: "AgentToolInvocation") -> None:
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name
        self.invocation = invocation


class SessionNotFoundError(AgentCoreError, LookupError):
    """Raised when a session disappears from the store during a run."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: '{session_id}'")
        self.session_id = session_id


class InvalidStatusTransitionError(AgentCoreError, ValueError):
    """Raised when a session status change is not allowed."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid session status transition: {current} -> {target}")
        self.current = current
        self.target = target


class ApprovalNotFoundError(AgentCoreError, LookupError):
    """Raised when an approval request id is unknown."""

    def __init__(self, approval_id: str) -> None:
        super().__init__(f"Approval request not found: '{approval_id}'")
        self.approval_id = approval_id


class ApprovalAlreadyResolvedError(AgentCoreError):
    """Raised when approving or rejecting a request that is no longer pending."""

    def __init__(self, approval_id: str, status: str) -> None:
        super().__init__(f"Approval request '{approval_id}' is already {status}")
        self.approval_id = approval_id
        self.status = status
