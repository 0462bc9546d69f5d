"""Bounded in-memory repository implementations.

These stores back development and tests. They keep everything in process,
hand out deep copies, and bound their size:

- ``InMemoryAgentSessionStore`` evicts the least-recently-updated session when
  a new one is created at capacity, and truncates per-session message and step
  lists from the oldest end once a per-session cap is exceeded.
- ``InMemoryApprovalStore`` evicts the oldest-requested approval at capacity,
  whatever its status.

Neither store locks internally; the runner serializes access per session.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from helmsman_ai.core.logging_config import get_logger

from ..schemas.domain import (
    AgentSessionState,
    AgentToolInvocation,
    ApprovalRequest,
    ApprovalStatus,
    SessionStatus,
)
from ..schemas.messages import LLMMessage

logger = get_logger(__name__)


class InMemoryAgentSessionStore:
    """
    Session store bounded by session count and per-session history length.

    Args:
        max_sessions: Maximum number of sessions kept.
        max_messages: Per-session cap on stored messages.
        max_steps: Per-session cap on stored tool invocation steps.
    """

    def __init__(self, *, max_sessions: int = 500, max_messages: int = 200, max_steps: int = 200) -> None:
        self._max_sessions = max_sessions
        self._max_messages = max_messages
        self._max_steps = max_steps
        # Ordered least- to most-recently updated.
        self._sessions: "OrderedDict[str, AgentSessionState]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, session_id: str) -> Optional[AgentSessionState]:
        session = self._sessions.get(session_id)
        return session.model_copy(deep=True) if session is not None else None

    async def create(self, session: AgentSessionState) -> AgentSessionState:
        if session.session_id not in self._sessions:
            while len(self._sessions) >= self._max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info(f"Session store at capacity ({self._max_sessions}); evicted session {evicted_id}")
        stored = session.model_copy(deep=True)
        self._trim(stored)
        self._sessions[stored.session_id] = stored
        self._sessions.move_to_end(stored.session_id)
        return stored.model_copy(deep=True)

    async def append_message(self, session_id: str, message: LLMMessage) -> Optional[AgentSessionState]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        session.messages.append(message.model_copy(deep=True))
        return self._touch(session)

    async def append_step(self, session_id: str, step: AgentToolInvocation) -> Optional[AgentSessionState]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        session.steps.append(step.model_copy(deep=True))
        return self._touch(session)

    async def update(
        self,
        session_id: str,
        *,
        status: Optional[SessionStatus] = None,
        metadata: Optional[Dict[str, Any]] = None,
        iterations: Optional[int] = None,
        last_confidence: Optional[float] = None,
    ) -> Optional[AgentSessionState]:
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if status is not None:
            session.status = SessionStatus(status)
        if metadata:
            session.metadata = {**session.metadata, **metadata}
        if iterations is not None:
            session.iterations = iterations
        if last_confidence is not None:
            session.last_confidence = last_confidence
        return self._touch(session)

    async def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    async def list_by_agent(self, agent: str, limit: int = 100) -> List[AgentSessionState]:
        return self._list(lambda s: s.agent == agent, limit)

    async def list_by_tenant(self, tenant_id: str, limit: int = 100) -> List[AgentSessionState]:
        return self._list(lambda s: s.tenant_id == tenant_id, limit)

    def _list(self, predicate, limit: int) -> List[AgentSessionState]:
        out: List[AgentSessionState] = []
        for session in reversed(self._sessions.values()):
            if predicate(session):
                out.append(session.model_copy(deep=True))
                if len(out) >= limit:
                    break
        return out

    def _touch(self, session: AgentSessionState) -> AgentSessionState:
        session.updated_at = datetime.now(timezone.utc)
        self._trim(session)
        self._sessions.move_to_end(session.session_id)
        return session.model_copy(deep=True)

    def _trim(self, session: AgentSessionState) -> None:
        if len(session.messages) > self._max_messages:
            session.messages = session.messages[-self._max_messages :]
        if len(session.steps) > self._max_steps:
            session.steps = session.steps[-self._max_steps :]


class InMemoryApprovalStore:
    """
    Approval store bounded by entry count.

    Args:
        max_items: Maximum number of approval requests kept (oldest requested evicted first).
    """

    def __init__(self, *, max_items: int = 1000) -> None:
        self._max_items = max_items
        self._items: "OrderedDict[str, ApprovalRequest]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._items)

    async def create(self, request: ApprovalRequest) -> ApprovalRequest:
        while len(self._items) >= self._max_items:
            evicted_id, evicted = self._items.popitem(last=False)
            logger.info(f"Approval store at capacity; evicted {evicted.status.value} request {evicted_id}")
        self._items[request.id] = request.model_copy(deep=True)
        return request.model_copy(deep=True)

    async def get(self, approval_id: str) -> Optional[ApprovalRequest]:
        item = self._items.get(approval_id)
        return item.model_copy(deep=True) if item is not None else None

    async def update(self, request: ApprovalRequest) -> None:
        if request.id in self._items:
            self._items[request.id] = request.model_copy(deep=True)

    async def find_by_tool_call(self, tool_call_id: str) -> Optional[ApprovalRequest]:
        for item in reversed(self._items.values()):
            if item.tool_call_id == tool_call_id:
                return item.model_copy(deep=True)
        return None

    async def list(
        self,
        *,
        status: Optional[ApprovalStatus] = None,
        session_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[ApprovalRequest]:
        out: List[ApprovalRequest] = []
        for item in reversed(self._items.values()):
            if status is not None and item.status != status:
                continue
            if session_id is not None and item.session_id != session_id:
                continue
            if agent_id is not None and item.agent_id != agent_id:
                continue
            if tenant_id is not None and item.tenant_id != tenant_id:
                continue
            out.append(item.model_copy(deep=True))
            if len(out) >= limit:
                break
        return out
