from __future__ import annotations

"""LangGraph agent run loop.

``AgentRunner`` drives one agent session through a bounded number of
(model call -> tool execution -> state update) rounds.

Execution model
---------------

- ``run`` resolves the agent spec and checks every declared tool has a handler
  before any model call, then holds the session's lock for the rest of the run.
- The loop is a LangGraph state machine over ``_LoopState``:

  1. ``call_model`` builds the outbound messages (system prompt + full session
     history), calls the provider with the agent's tools, appends the assistant
     message and increments ``iterations``.
  2. ``execute_tools`` runs the assistant's tool calls one at a time, in the
     order they appear, appending one tool-result message per call.
  3. ``finalize`` derives confidence from the final answer and completes or
     escalates the session.
  4. ``fail`` ends the run when the iteration budget is spent.

Errors
------

Provider errors and tool handler errors propagate out of ``run`` and leave the
session at its last persisted state. Two policy flags absorb tool problems
instead: ``escalation.on_timeout`` escalates a timed-out call, and
``escalation.on_tool_failure`` escalates a failed one. A timeout without
``on_timeout`` is recorded and the loop continues.

Approval
--------

With an ``ApprovalWorkflow`` configured, low-confidence answers open an approval
request, and calls to tools that require approval pause the run as
``escalated`` with ``finish_reason="approval_required"``. A later ``run`` with
the same ``session_id`` resolves those dangling calls first: approved calls run,
rejected calls receive an error result, pending calls escalate again.

Unanswered calls left behind by a run that raised are never re-run. The next
run closes each of them with an error tool-result before appending its input.
"""

import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from langgraph.graph import END, StateGraph

from helmsman_ai.core.config import settings
from helmsman_ai.core.logging_config import get_logger
from helmsman_ai.core.monitoring import log_agent_completion, log_agent_run, log_error

from ..approval.workflow import ApprovalWorkflow
from ..errors import MissingToolHandlerError, SessionNotFoundError, ToolExecutionError, ToolNotRegisteredError
from ..memory.manager import AgentMemoryManager, track_message_in_memory
from ..providers.base import ModelProvider
from ..repos.in_memory import InMemoryAgentSessionStore
from ..repos.interfaces import AgentSessionStore
from ..schemas.domain import (
    AgentEventName,
    AgentEventPayload,
    AgentSessionState,
    AgentToolInvocation,
    ApprovalRequest,
    ApprovalStatus,
    SessionStatus,
)
from ..schemas.messages import LLMChatOptions, LLMMessage, MessageRole, ToolCallPart, ToolResultPart
from ..sessions.locks import SessionLockTable
from ..sessions.status import is_terminal, transition
from ..spec.registry import AgentRegistry
from ..tools.base import EventEmitter, ToolContext
from ..tools.executor import ToolExecutor
from .helpers import (
    build_system_prompt,
    derive_confidence,
    extract_tool_calls,
    get_assistant_text,
    safe_parse,
    serialize_output,
    should_escalate,
)
from .models import AgentRunRequest, AgentRunResult, _LoopState, _RunScope

logger = get_logger(__name__)

_TERMINAL_EVENTS = {
    SessionStatus.completed: AgentEventName.completed,
    SessionStatus.escalated: AgentEventName.escalated,
    SessionStatus.failed: AgentEventName.failed,
}


def _dangling_tool_calls(session: AgentSessionState) -> List[ToolCallPart]:
    """Tool calls of the latest assistant turn that have no tool-result message yet."""
    messages = session.messages
    for idx in range(len(messages) - 1, -1, -1):
        message = messages[idx]
        if message.role == MessageRole.user:
            return []
        if message.role == MessageRole.assistant:
            answered = {m.tool_call_id for m in messages[idx + 1 :] if m.role == MessageRole.tool}
            return [call for call in message.tool_calls() if call.id not in answered]
    return []


class AgentRunner:
    """Run agents defined in an ``AgentRegistry`` against a model provider.

    The runner owns no agent-specific logic: instructions, tools and policy come
    from the resolved ``AgentSpec``; tool work is delegated to the
    ``ToolExecutor``; persistence goes through the ``AgentSessionStore``.
    """

    def __init__(
        self,
        *,
        registry: AgentRegistry,
        llm: ModelProvider,
        tool_executor: ToolExecutor,
        memory_manager: Optional[AgentMemoryManager] = None,
        session_store: Optional[AgentSessionStore] = None,
        event_emitter: Optional[EventEmitter] = None,
        max_iterations: Optional[int] = None,
        default_system_prompt: Optional[str] = None,
        approval_workflow: Optional[ApprovalWorkflow] = None,
    ) -> None:
        """
        Initialize the AgentRunner.

        Args:
            registry: Agent definitions to resolve requests against.
            llm: The model provider.
            tool_executor: Registered tool handlers.
            memory_manager: Optional conversational memory backend.
            session_store: Session persistence; defaults to a bounded in-memory store.
            event_emitter: Optional async sink for lifecycle events.
            max_iterations: Model turns allowed per run; defaults to ``HELMSMAN_AI_MAX_ITERATIONS``.
            default_system_prompt: Base system prompt; defaults to ``HELMSMAN_AI_DEFAULT_SYSTEM_PROMPT``.
            approval_workflow: Optional workflow used to open approval requests.
        """
        runner_cfg = settings.runner
        if session_store is None:
            limits = settings.stores
            session_store = InMemoryAgentSessionStore(
                max_sessions=limits.max_sessions,
                max_messages=limits.max_messages_per_session,
                max_steps=limits.max_steps_per_session,
            )

        self._registry = registry
        self._llm = llm
        self._tools = tool_executor
        self._memory = memory_manager
        self._sessions = session_store
        self._emitter = event_emitter
        self._max_iterations = max_iterations if max_iterations is not None else runner_cfg.max_iterations
        self._system_prompt = (
            default_system_prompt if default_system_prompt is not None else runner_cfg.default_system_prompt
        )
        self._approvals = approval_workflow
        self._locks = SessionLockTable()
        self._graph = self._build_graph()

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @property
    def session_store(self) -> AgentSessionStore:
        return self._sessions

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_LoopState)
        g.add_node("call_model", self._node_call_model)
        g.add_node("execute_tools", self._node_execute_tools)
        g.add_node("finalize", self._node_finalize)
        g.add_node("fail", self._node_fail)

        g.set_entry_point("call_model")
        g.add_conditional_edges(
            "call_model",
            self._route_after_model,
            {
                "tools": "execute_tools",
                "finalize": "finalize",
                "fail": "fail",
            },
        )
        g.add_conditional_edges(
            "execute_tools",
            self._route_after_tools,
            {
                "continue": "call_model",
                "end": END,
            },
        )
        g.add_edge("finalize", END)
        g.add_edge("fail", END)
        return g.compile()

    async def run(self, request: AgentRunRequest) -> AgentRunResult:
        """Execute one run of an agent.

        Raises
        ------
        AgentNotFoundError
            If no registered spec matches ``request.agent`` / ``request.version``.
        MissingToolHandlerError
            If a declared tool has no registered handler. No model call is made.
        ToolExecutionError
            If a tool handler fails and the policy does not escalate on tool failure.
        """
        spec = self._registry.require(request.agent, request.version)
        self._ensure_tools(spec)

        session_id = request.session_id or str(uuid4())
        async with self._locks.hold(session_id):
            return await self._run_locked(spec, request, session_id)

    def _ensure_tools(self, spec) -> None:
        for tool in spec.tools:
            if not self._tools.has(tool.name):
                raise MissingToolHandlerError(spec.name, tool.name)

    async def _run_locked(self, spec, request: AgentRunRequest, session_id: str) -> AgentRunResult:
        started = time.perf_counter()
        session = await self._load_or_create(spec, request, session_id)
        scope = _RunScope(spec=spec, request=request, session=session)

        logger.info(f"Agent run started: agent={spec.name}@{spec.version} session={session_id}")
        log_agent_run(session_id, spec.name, request.tenant_id, self._max_iterations)

        try:
            result = await self._resume_dangling_calls(scope)
            if result is None:
                if request.input.strip():
                    await self._append_message(
                        scope,
                        LLMMessage.text(MessageRole.user, request.input, metadata=dict(request.metadata)),
                    )
                state: _LoopState = {"scope": scope, "run_iterations": 0}
                final = await self._graph.ainvoke(
                    state, config={"recursion_limit": 2 * self._max_iterations + 5}
                )
                result = final["result"]
        except Exception as e:
            log_error(type(e).__name__, str(e), {"session_id": session_id, "agent": spec.name})
            raise

        duration_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            f"Agent run finished: session={session_id} status={result.session.status.value} "
            f"finish_reason={result.finish_reason} iterations={result.iterations}"
        )
        log_agent_completion(session_id, result.session.status.value, result.finish_reason, duration_ms)
        return result

    # ------------------------------------------------------------------
    # Graph nodes
    # ------------------------------------------------------------------

    async def _node_call_model(self, state: _LoopState) -> _LoopState:
        scope = state["scope"]
        run_iterations = int(state.get("run_iterations") or 0)
        if run_iterations >= self._max_iterations:
            state["exhausted"] = True
            return state

        spec, request = scope.spec, scope.request
        iteration = run_iterations + 1
        await self._emit(AgentEventName.iteration_started, scope.session, iteration=iteration)
        logger.debug(f"Iteration {iteration}/{self._max_iterations} for session {scope.session.session_id}")

        system_prompt = build_system_prompt(
            spec, base_prompt=self._system_prompt, instructions_override=request.instructions_override
        )
        messages = [LLMMessage.text(MessageRole.system, system_prompt)] + list(scope.session.messages)
        options = LLMChatOptions(
            tools=self._tools.list_exposed_tools(spec.tool_names),
            metadata={"agent": spec.name, "tenant_id": request.tenant_id or ""},
            user_id=request.actor_id,
        )
        response = await self._llm.chat(messages, options)
        scope.response = response

        await self._append_message(scope, response.message)
        await self._persist(scope, iterations=scope.session.iterations + 1)

        state["run_iterations"] = iteration
        state["pending_calls"] = extract_tool_calls(response.message)
        return state

    def _route_after_model(self, state: _LoopState) -> str:
        if state.get("exhausted"):
            return "fail"
        if state.get("pending_calls"):
            return "tools"
        return "finalize"

    async def _node_execute_tools(self, state: _LoopState) -> _LoopState:
        calls = list(state.get("pending_calls") or [])
        state["pending_calls"] = []
        state["result"] = await self._process_tool_calls(state["scope"], calls)
        return state

    def _route_after_tools(self, state: _LoopState) -> str:
        return "end" if state.get("result") is not None else "continue"

    async def _node_finalize(self, state: _LoopState) -> _LoopState:
        scope = state["scope"]
        response = scope.response
        output_text = get_assistant_text(response.message if response is not None else None)
        confidence = derive_confidence(response, scope.spec.policy)
        escalate = should_escalate(confidence, scope.spec.policy)
        finish_reason = (response.finish_reason if response is not None else None) or "stop"

        state["result"] = await self._conclude(
            scope,
            SessionStatus.escalated if escalate else SessionStatus.completed,
            finish_reason=finish_reason,
            output_text=output_text,
            confidence=confidence,
            approval_reason="Low confidence response",
            approval_payload={"confidence": confidence, "output_text": output_text},
        )
        return state

    async def _node_fail(self, state: _LoopState) -> _LoopState:
        scope = state["scope"]
        logger.warning(
            f"Session {scope.session.session_id} exhausted {self._max_iterations} iterations without a final answer"
        )
        response = scope.response
        state["result"] = await self._conclude(
            scope,
            SessionStatus.failed,
            finish_reason="max_iterations",
            output_text=get_assistant_text(response.message if response is not None else None),
            confidence=scope.session.last_confidence if scope.session.last_confidence is not None else 0.0,
            event_metadata={"reason": "max_iterations"},
        )
        return state

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    async def _resume_dangling_calls(self, scope: _RunScope) -> Optional[AgentRunResult]:
        calls = _dangling_tool_calls(scope.session)
        if not calls:
            return None
        logger.info(f"Resuming {len(calls)} unanswered tool call(s) in session {scope.session.session_id}")

        # Calls from the approval pause onward were never attempted; failed calls are not retried.
        attempted = {step.tool_call_id for step in scope.session.steps}
        replay = False
        for call in calls:
            if call.id in attempted:
                replay = False
            elif not replay and self._approvals is not None:
                replay = await self._approvals.get_by_tool_call(call.id) is not None
            if replay:
                result = await self._handle_tool_call(scope, call)
                if result is not None:
                    return result
                continue
            logger.warning(f"Tool call {call.id} ({call.name}) did not complete; not retrying")
            await self._append_tool_result(scope, call, {"error": f"Tool call '{call.name}' did not complete"})
        return None

    async def _process_tool_calls(self, scope: _RunScope, calls: List[ToolCallPart]) -> Optional[AgentRunResult]:
        for call in calls:
            result = await self._handle_tool_call(scope, call)
            if result is not None:
                return result
        return None

    async def _handle_tool_call(self, scope: _RunScope, call: ToolCallPart) -> Optional[AgentRunResult]:
        spec, request = scope.spec, scope.request
        tool_cfg = spec.get_tool(call.name)
        if tool_cfg is None:
            raise ToolNotRegisteredError(call.name)
        args = safe_parse(call.arguments)

        if tool_cfg.needs_approval and self._approvals is not None:
            approval = await self._approvals.get_by_tool_call(call.id)
            if approval is None or approval.status == ApprovalStatus.pending:
                return await self._await_approval(scope, call, args, approval)
            if approval.status == ApprovalStatus.rejected:
                reviewer = approval.reviewer or "a reviewer"
                await self._append_tool_result(
                    scope, call, {"error": f"Tool call '{call.name}' was rejected by {reviewer}"}
                )
                return None
            logger.debug(f"Tool call {call.id} approved by {approval.reviewer}")

        ctx = ToolContext(
            agent_id=spec.name,
            session_id=scope.session.session_id,
            tenant_id=request.tenant_id,
            actor_id=request.actor_id,
            tool_call_id=call.id,
            metadata=dict(request.metadata),
            emit=self._emit_raw,
        )
        escalation = spec.policy.escalation
        try:
            invocation, output = await self._tools.execute(call.name, args, ctx, timeout_ms=tool_cfg.timeout_ms)
        except ToolExecutionError as e:
            await self._record_step(scope, e.invocation)
            if not escalation.on_tool_failure:
                raise
            await self._append_tool_result(scope, call, {"error": e.invocation.error})
            return await self._conclude(
                scope,
                SessionStatus.escalated,
                finish_reason="tool_failure",
                approval_reason=f"Tool '{call.name}' failed",
                approval_payload={"tool_name": call.name, "error": e.invocation.error},
            )

        await self._record_step(scope, invocation)
        if invocation.timed_out:
            await self._append_tool_result(scope, call, {"error": invocation.error})
            if escalation.on_timeout:
                return await self._conclude(
                    scope,
                    SessionStatus.escalated,
                    finish_reason="tool_timeout",
                    approval_reason=f"Tool '{call.name}' timed out",
                    approval_payload={"tool_name": call.name, "error": invocation.error},
                )
            logger.warning(f"Continuing after timeout of tool '{call.name}' in session {scope.session.session_id}")
            return None

        await self._append_tool_result(scope, call, output)
        return None

    async def _await_approval(
        self,
        scope: _RunScope,
        call: ToolCallPart,
        args: Any,
        existing: Optional[ApprovalRequest],
    ) -> AgentRunResult:
        """Escalate the run until a reviewer resolves the call, opening a request if none exists."""
        if existing is None:
            request = await self._approvals.request_approval(
                scope.session,
                f"Approval required for tool '{call.name}'",
                {"approval_workflow": scope.spec.policy.escalation.approval_workflow},
                tool_name=call.name,
                tool_call_id=call.id,
                tool_args=args,
            )
            await self._emit(
                AgentEventName.approval_requested,
                scope.session,
                tool_name=call.name,
                metadata={"approval_request_id": request.id},
            )
            approval_id = request.id
        else:
            approval_id = existing.id

        return await self._conclude(
            scope,
            SessionStatus.escalated,
            finish_reason="approval_required",
            approval_id=approval_id,
        )

    async def _append_tool_result(self, scope: _RunScope, call: ToolCallPart, output: Any) -> None:
        message = LLMMessage(
            role=MessageRole.tool,
            name=call.name,
            tool_call_id=call.id,
            content=[ToolResultPart(tool_call_id=call.id, output=serialize_output(output))],
        )
        await self._append_message(scope, message)
        await self._emit(AgentEventName.tool_completed, scope.session, tool_name=call.name)

    async def _record_step(self, scope: _RunScope, invocation: AgentToolInvocation) -> None:
        scope.invocations.append(invocation)
        updated = await self._sessions.append_step(scope.session.session_id, invocation)
        if updated is None:
            raise SessionNotFoundError(scope.session.session_id)
        scope.session = updated

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def _load_or_create(self, spec, request: AgentRunRequest, session_id: str) -> AgentSessionState:
        session = await self._sessions.get(session_id) if request.session_id else None
        if session is None:
            session = await self._sessions.create(
                AgentSessionState(
                    session_id=session_id,
                    agent=spec.name,
                    version=spec.version,
                    tenant_id=request.tenant_id,
                    metadata=dict(request.metadata),
                )
            )
            await self._emit(AgentEventName.session_created, session)
            return session

        if is_terminal(session.status):
            logger.info(f"Re-opening {session.status.value} session {session_id}")
            status = transition(session.status, SessionStatus.running, resume=True)
            updated = await self._sessions.update(session_id, status=status)
            if updated is None:
                raise SessionNotFoundError(session_id)
            session = updated
            await self._emit(AgentEventName.session_updated, session, metadata={"status": session.status.value})
        return session

    async def _conclude(
        self,
        scope: _RunScope,
        status: SessionStatus,
        *,
        finish_reason: str,
        output_text: str = "",
        confidence: Optional[float] = None,
        approval_id: Optional[str] = None,
        approval_reason: Optional[str] = None,
        approval_payload: Optional[Dict[str, Any]] = None,
        event_metadata: Optional[Dict[str, Any]] = None,
    ) -> AgentRunResult:
        """Move the session to a terminal status, optionally open an approval, and build the result."""
        new_status = transition(scope.session.status, status)
        await self._persist(scope, status=new_status, last_confidence=confidence)

        if (
            new_status == SessionStatus.escalated
            and approval_id is None
            and approval_reason
            and self._approvals is not None
        ):
            request = await self._approvals.request_approval(scope.session, approval_reason, approval_payload)
            approval_id = request.id
            await self._emit(
                AgentEventName.approval_requested,
                scope.session,
                metadata={"approval_request_id": request.id},
            )
        if approval_id is not None:
            await self._persist(scope, metadata={"approval_request_id": approval_id})
        scope.approval_request_id = approval_id

        metadata: Dict[str, Any] = {"finish_reason": finish_reason}
        if confidence is not None:
            metadata["confidence"] = confidence
        metadata.update(event_metadata or {})
        await self._emit(_TERMINAL_EVENTS[new_status], scope.session, metadata=metadata)

        return AgentRunResult(
            session=scope.session,
            response=scope.response,
            output_text=output_text,
            confidence=confidence,
            iterations=scope.session.iterations,
            requires_escalation=new_status != SessionStatus.completed,
            approval_request_id=approval_id,
            finish_reason=finish_reason,
            tool_invocations=list(scope.invocations),
        )

    async def _append_message(self, scope: _RunScope, message: LLMMessage) -> None:
        await track_message_in_memory(self._memory, scope.session, message)
        updated = await self._sessions.append_message(scope.session.session_id, message)
        if updated is None:
            raise SessionNotFoundError(scope.session.session_id)
        scope.session = updated
        await self._emit(AgentEventName.session_updated, updated, metadata={"status": updated.status.value})

    async def _persist(self, scope: _RunScope, **fields: Any) -> None:
        updated = await self._sessions.update(scope.session.session_id, **fields)
        if updated is None:
            raise SessionNotFoundError(scope.session.session_id)
        scope.session = updated
        await self._emit(AgentEventName.session_updated, updated, metadata={"status": updated.status.value})

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _emit(
        self,
        event: AgentEventName,
        session: AgentSessionState,
        *,
        iteration: Optional[int] = None,
        tool_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = AgentEventPayload(
            session_id=session.session_id,
            agent=session.agent,
            tenant_id=session.tenant_id,
            iteration=iteration,
            tool_name=tool_name,
            metadata=dict(metadata or {}),
        )
        await self._emit_raw(event.value, payload)

    async def _emit_raw(self, event: str, payload: Any) -> None:
        if self._emitter is not None:
            await self._emitter(event, payload)
