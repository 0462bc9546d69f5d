"""Agent orchestration core: specs, tools, sessions, memory, approvals and the run loop.

This package contains the "engine room" of Helmsman-AI.

Design overview
---------------

An agent is an immutable ``AgentSpec`` (instructions, declared tools, policy,
knowledge references) registered in an ``AgentRegistry``. ``AgentRunner``
drives a session for that agent through a bounded loop:

- call the model provider with the agent's tools,
- run any tool calls through the ``ToolExecutor`` (sequentially, with a deadline),
- append every message and tool invocation to the session,
- derive confidence from the final answer and complete or escalate.

Escalations and approval-gated tool calls open ``ApprovalRequest`` records.
Resolution happens outside the core; resuming is a fresh ``run`` with the same
session id.

Typical usage
-------------

1. Define agents with ``define_agent`` and register them.
2. Register tool handlers with a ``ToolExecutor``.
3. Build a runner with ``factory.build_agent_runner`` (or construct ``AgentRunner``).
4. ``await runner.run(AgentRunRequest(agent=..., input=...))``.
"""

from .approval import ApprovalWorkflow
from .errors import (
    AgentCoreError,
    AgentNotFoundError,
    AgentSpecValidationError,
    ApprovalAlreadyResolvedError,
    ApprovalNotFoundError,
    DuplicateToolError,
    InvalidStatusTransitionError,
    MissingToolHandlerError,
    SessionNotFoundError,
    ToolExecutionError,
    ToolNotRegisteredError,
)
from .factory import build_agent_runner
from .memory import InMemoryAgentMemory
from .providers import ModelProvider
from .repos import InMemoryAgentSessionStore, InMemoryApprovalStore
from .runtime import AgentRunner, AgentRunRequest, AgentRunResult
from .spec import AgentRegistry, AgentSpec, define_agent
from .tools import AgentToolRegistration, ToolContext, ToolExecutor

__all__ = [
    "AgentCoreError",
    "AgentNotFoundError",
    "AgentSpecValidationError",
    "ApprovalAlreadyResolvedError",
    "ApprovalNotFoundError",
    "DuplicateToolError",
    "InvalidStatusTransitionError",
    "MissingToolHandlerError",
    "SessionNotFoundError",
    "ToolExecutionError",
    "ToolNotRegisteredError",
    "AgentRegistry",
    "AgentSpec",
    "define_agent",
    "AgentToolRegistration",
    "ToolContext",
    "ToolExecutor",
    "InMemoryAgentMemory",
    "InMemoryAgentSessionStore",
    "InMemoryApprovalStore",
    "ApprovalWorkflow",
    "ModelProvider",
    "AgentRunner",
    "AgentRunRequest",
    "AgentRunResult",
    "build_agent_runner",
]
