from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import Field

from .base import BaseSchema
from .messages import LLMMessage


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class SessionStatus(str, Enum):
    running = "running"
    completed = "completed"
    escalated = "escalated"
    failed = "failed"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class MemoryEntryType(str, Enum):
    user = "user"
    assistant = "assistant"
    tool = "tool"
    system = "system"


class AgentEventName(str, Enum):
    session_created = "agent.session.created"
    session_updated = "agent.session.updated"
    iteration_started = "agent.iteration.started"
    tool_completed = "agent.tool.completed"
    completed = "agent.completed"
    escalated = "agent.escalated"
    failed = "agent.failed"
    approval_requested = "agent.approval_requested"


class AgentToolInvocation(BaseSchema):
    id: str = Field(default_factory=_new_id)
    tool_call_id: Optional[str] = None
    name: str
    arguments: Any = None

    started_at: datetime
    completed_at: datetime
    duration_ms: float

    success: bool
    error: Optional[str] = None
    timed_out: bool = False


class AgentSessionState(BaseSchema):
    session_id: str = Field(default_factory=_new_id)
    agent: str
    version: str
    tenant_id: Optional[str] = None

    status: SessionStatus = SessionStatus.running
    messages: List[LLMMessage] = Field(default_factory=list)
    steps: List[AgentToolInvocation] = Field(default_factory=list)
    iterations: int = 0
    last_confidence: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class ApprovalRequest(BaseSchema):
    id: str = Field(default_factory=_new_id)
    session_id: str
    agent_id: str
    tenant_id: Optional[str] = None

    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_args: Any = None
    reason: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    requested_at: datetime = Field(default_factory=_utc_now)
    status: ApprovalStatus = ApprovalStatus.pending
    reviewer: Optional[str] = None
    resolved_at: Optional[datetime] = None
    notes: Optional[str] = None


class AgentMemoryEntry(BaseSchema):
    id: str = Field(default_factory=_new_id)
    type: MemoryEntryType
    content: str
    created_at: datetime = Field(default_factory=_utc_now)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AgentMemorySnapshot(BaseSchema):
    session_id: str
    entries: List[AgentMemoryEntry] = Field(default_factory=list)
    summary: Optional[str] = None
    last_summarized_at: Optional[datetime] = None
    appended_since_summary: int = 0

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class AgentEventPayload(BaseSchema):
    session_id: str
    agent: str
    tenant_id: Optional[str] = None
    iteration: Optional[int] = None
    tool_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
