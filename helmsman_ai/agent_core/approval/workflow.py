from __future__ import annotations

"""Human-in-the-loop approval workflow.

Approval is modelled as two decoupled operations:

- *open* a request (``request_approval``), which is synchronous and fast, and
- *resolve* it (``approve`` / ``reject``), performed later by an external reviewer.

Nothing here blocks waiting for a decision. Resuming work after a decision is
a fresh ``AgentRunner.run`` invocation keyed by the same session id; the runner
consults ``get_status`` for the tool calls it left dangling.

State machine
-------------

``pending -> approved`` or ``pending -> rejected``. Resolved requests are
terminal: resolving them again raises ``ApprovalAlreadyResolvedError``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from helmsman_ai.core.logging_config import get_logger

from ..errors import ApprovalAlreadyResolvedError, ApprovalNotFoundError
from ..repos.in_memory import InMemoryApprovalStore
from ..repos.interfaces import ApprovalStore
from ..schemas.domain import AgentSessionState, ApprovalRequest, ApprovalStatus

logger = get_logger(__name__)


class ApprovalWorkflow:
    """Open, resolve and query approval requests.

    Args:
        store: Approval persistence. Defaults to a bounded in-memory store.
    """

    def __init__(self, store: Optional[ApprovalStore] = None) -> None:
        self._store: ApprovalStore = store if store is not None else InMemoryApprovalStore()

    async def request_approval(
        self,
        session: AgentSessionState,
        reason: str,
        payload: Optional[Dict[str, Any]] = None,
        *,
        tool_name: Optional[str] = None,
        tool_call_id: Optional[str] = None,
        tool_args: Any = None,
    ) -> ApprovalRequest:
        """
        Open a pending approval request for a session.

        Args:
            session: The session the request belongs to.
            reason: Human-readable reason shown to the reviewer.
            payload: Extra context for the reviewer (e.g. confidence, output text).
            tool_name: Name of the gated tool, when the request guards a tool call.
            tool_call_id: Id of the gated tool call.
            tool_args: Parsed arguments of the gated tool call.

        Returns:
            The stored pending request.
        """
        request = ApprovalRequest(
            session_id=session.session_id,
            agent_id=session.agent,
            tenant_id=session.tenant_id,
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            tool_args=tool_args,
            reason=reason,
            payload=dict(payload or {}),
        )
        created = await self._store.create(request)
        logger.info(
            f"Approval requested: id={created.id} session={created.session_id} "
            f"tool={created.tool_name or '-'} reason={reason!r}"
        )
        return created

    async def approve(self, approval_id: str, reviewer: str, notes: Optional[str] = None) -> ApprovalRequest:
        return await self._resolve(approval_id, ApprovalStatus.approved, reviewer, notes)

    async def reject(self, approval_id: str, reviewer: str, notes: Optional[str] = None) -> ApprovalRequest:
        return await self._resolve(approval_id, ApprovalStatus.rejected, reviewer, notes)

    async def get(self, approval_id: str) -> Optional[ApprovalRequest]:
        return await self._store.get(approval_id)

    async def get_by_tool_call(self, tool_call_id: str) -> Optional[ApprovalRequest]:
        return await self._store.find_by_tool_call(tool_call_id)

    async def get_status(self, tool_call_id: str) -> Optional[ApprovalStatus]:
        """Return the status of the latest request opened for a tool call, or None if there is none."""
        request = await self.get_by_tool_call(tool_call_id)
        return request.status if request is not None else None

    async def is_approved(self, tool_call_id: str) -> bool:
        return await self.get_status(tool_call_id) == ApprovalStatus.approved

    async def list_pending(
        self,
        *,
        tenant_id: Optional[str] = None,
        agent_id: Optional[str] = None,
        session_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[ApprovalRequest]:
        return await self._store.list(
            status=ApprovalStatus.pending,
            tenant_id=tenant_id,
            agent_id=agent_id,
            session_id=session_id,
            limit=limit,
        )

    async def _resolve(
        self,
        approval_id: str,
        status: ApprovalStatus,
        reviewer: str,
        notes: Optional[str],
    ) -> ApprovalRequest:
        request = await self._store.get(approval_id)
        if request is None:
            raise ApprovalNotFoundError(approval_id)
        if request.status != ApprovalStatus.pending:
            raise ApprovalAlreadyResolvedError(approval_id, request.status.value)

        request.status = status
        request.reviewer = reviewer
        request.notes = notes
        request.resolved_at = datetime.now(timezone.utc)
        await self._store.update(request)
        logger.info(f"Approval {approval_id} {status.value} by {reviewer}")
        return request
