from __future__ import annotations

"""Repository interface contracts.

The runner and the approval workflow depend on these Protocols instead of
concrete persistence implementations.

Contract guidelines
-------------------

- All methods are async so remote backends can be plugged in.
- Mutating methods return the updated record, or None when the key is unknown.
- List methods return the most recently updated (or requested) records first.
- Implementations must not hand out references to their internal state.
"""

from typing import Any, Dict, List, Optional, Protocol

from ..schemas.domain import (
    AgentSessionState,
    AgentToolInvocation,
    ApprovalRequest,
    ApprovalStatus,
    SessionStatus,
)
from ..schemas.messages import LLMMessage


class AgentSessionStore(Protocol):
    """Persist and query agent sessions."""

    async def get(self, session_id: str) -> Optional[AgentSessionState]:
        """
        Retrieve a session by id.

        Returns:
            The session if found, else None.
        """
        ...

    async def create(self, session: AgentSessionState) -> AgentSessionState:
        """
        Persist a new session.

        Args:
            session: The initial session state.
        """
        ...

    async def append_message(self, session_id: str, message: LLMMessage) -> Optional[AgentSessionState]:
        """
        Append a chat message to the session's ordered history.
        """
        ...

    async def append_step(self, session_id: str, step: AgentToolInvocation) -> Optional[AgentSessionState]:
        """
        Append a tool invocation record to the session's audit trail.
        """
        ...

    async def update(
        self,
        session_id: str,
        *,
        status: Optional[SessionStatus] = None,
        metadata: Optional[Dict[str, Any]] = None,
        iterations: Optional[int] = None,
        last_confidence: Optional[float] = None,
    ) -> Optional[AgentSessionState]:
        """
        Update coarse session fields. ``metadata`` is merged into the existing mapping.
        """
        ...

    async def delete(self, session_id: str) -> bool:
        """
        Delete a session.

        Returns:
            True if a session was removed.
        """
        ...

    async def list_by_agent(self, agent: str, limit: int = 100) -> List[AgentSessionState]:
        """
        List sessions of an agent, most recently updated first.
        """
        ...

    async def list_by_tenant(self, tenant_id: str, limit: int = 100) -> List[AgentSessionState]:
        """
        List sessions of a tenant, most recently updated first.
        """
        ...


class ApprovalStore(Protocol):
    """Store approval requests and their resolution outcomes."""

    async def create(self, request: ApprovalRequest) -> ApprovalRequest:
        """
        Persist a new pending approval request.
        """
        ...

    async def get(self, approval_id: str) -> Optional[ApprovalRequest]:
        """
        Retrieve an approval request by id.
        """
        ...

    async def update(self, request: ApprovalRequest) -> None:
        """
        Overwrite a stored approval request (used to record its resolution).
        """
        ...

    async def find_by_tool_call(self, tool_call_id: str) -> Optional[ApprovalRequest]:
        """
        Retrieve the most recent approval request opened for a tool call.
        """
        ...

    async def list(
        self,
        *,
        status: Optional[ApprovalStatus] = None,
        session_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[ApprovalRequest]:
        """
        List approval requests matching all given filters, most recently requested first.
        """
        ...
