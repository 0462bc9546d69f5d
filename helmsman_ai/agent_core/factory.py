from __future__ import annotations

"""Convenience factories for wiring the agent core.

These helpers build the default in-memory collaborators from application
settings and instantiate an ``AgentRunner``.

The intent is to keep application wiring and tests concise, while still
allowing deployments to pass their own stores, memory backend or approval
workflow.
"""

from typing import Iterable, Optional

from helmsman_ai.core.config import Settings, settings as default_settings

from .approval.workflow import ApprovalWorkflow
from .memory.manager import AgentMemoryManager, InMemoryAgentMemory
from .providers.base import ModelProvider
from .repos.in_memory import InMemoryAgentSessionStore, InMemoryApprovalStore
from .repos.interfaces import AgentSessionStore
from .runtime.runner import AgentRunner
from .spec.registry import AgentRegistry
from .tools.base import AgentToolRegistration, EventEmitter
from .tools.executor import ToolExecutor


def build_tool_executor(
    tools: Iterable[AgentToolRegistration] = (),
    *,
    settings: Optional[Settings] = None,
) -> ToolExecutor:
    """Build a ``ToolExecutor`` using the configured deadline and abort grace period."""
    cfg = (settings or default_settings).runner
    executor = ToolExecutor(default_timeout_ms=cfg.tool_timeout_ms, abort_grace_ms=cfg.tool_abort_grace_ms)
    for tool in tools:
        executor.register(tool)
    return executor


def build_memory_manager(*, settings: Optional[Settings] = None) -> InMemoryAgentMemory:
    limits = (settings or default_settings).stores
    return InMemoryAgentMemory(
        max_entries=limits.memory_max_entries,
        ttl_minutes=limits.memory_ttl_minutes,
        summary_window=limits.memory_summary_window,
        summarize_every=limits.memory_summarize_every,
    )


def build_session_store(*, settings: Optional[Settings] = None) -> InMemoryAgentSessionStore:
    limits = (settings or default_settings).stores
    return InMemoryAgentSessionStore(
        max_sessions=limits.max_sessions,
        max_messages=limits.max_messages_per_session,
        max_steps=limits.max_steps_per_session,
    )


def build_approval_workflow(*, settings: Optional[Settings] = None) -> ApprovalWorkflow:
    limits = (settings or default_settings).stores
    return ApprovalWorkflow(InMemoryApprovalStore(max_items=limits.max_approvals))


def build_agent_runner(
    *,
    registry: AgentRegistry,
    llm: ModelProvider,
    tools: Iterable[AgentToolRegistration] = (),
    tool_executor: Optional[ToolExecutor] = None,
    session_store: Optional[AgentSessionStore] = None,
    memory_manager: Optional[AgentMemoryManager] = None,
    approval_workflow: Optional[ApprovalWorkflow] = None,
    event_emitter: Optional[EventEmitter] = None,
    with_memory: bool = True,
    with_approvals: bool = True,
    settings: Optional[Settings] = None,
) -> AgentRunner:
    """Construct an ``AgentRunner`` from settings, filling in in-memory defaults.

    Explicitly passed collaborators always win over the defaults built here.
    ``with_memory`` / ``with_approvals`` disable the default memory manager and
    approval workflow when no explicit one is given.
    """
    cfg = settings or default_settings
    executor = tool_executor if tool_executor is not None else build_tool_executor(settings=cfg)
    for tool in tools:
        executor.register(tool)

    if memory_manager is None and with_memory:
        memory_manager = build_memory_manager(settings=cfg)
    if approval_workflow is None and with_approvals:
        approval_workflow = build_approval_workflow(settings=cfg)

    runner_cfg = cfg.runner
    return AgentRunner(
        registry=registry,
        llm=llm,
        tool_executor=executor,
        memory_manager=memory_manager,
        session_store=session_store if session_store is not None else build_session_store(settings=cfg),
        event_emitter=event_emitter,
        max_iterations=runner_cfg.max_iterations,
        default_system_prompt=runner_cfg.default_system_prompt,
        approval_workflow=approval_workflow,
    )
