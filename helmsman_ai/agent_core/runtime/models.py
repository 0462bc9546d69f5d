from __future__ import annotations

"""Run request/result models and LangGraph state types.

- ``AgentRunRequest`` / ``AgentRunResult`` are the public input and output of
  ``AgentRunner.run``.
- ``_RunScope`` holds the per-run objects the graph nodes share.
- ``_LoopState`` is the state passed between LangGraph nodes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, NotRequired, Optional, Required, TypedDict

from pydantic import Field

from ..schemas.base import BaseSchema
from ..schemas.domain import AgentSessionState, AgentToolInvocation
from ..schemas.messages import LLMResponse, ToolCallPart
from ..spec.models import AgentSpec


class AgentRunRequest(BaseSchema):
    agent: str
    version: Optional[str] = None
    input: str = ""

    session_id: Optional[str] = None
    tenant_id: Optional[str] = None
    actor_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    instructions_override: Optional[str] = None


class AgentRunResult(BaseSchema):
    session: AgentSessionState
    response: Optional[LLMResponse] = None
    output_text: str = ""
    confidence: Optional[float] = None
    iterations: int = 0

    requires_escalation: bool = False
    approval_request_id: Optional[str] = None
    finish_reason: Optional[str] = None
    tool_invocations: List[AgentToolInvocation] = Field(default_factory=list)


@dataclass
class _RunScope:
    """Objects shared by the graph nodes for one ``run`` call."""

    spec: AgentSpec
    request: AgentRunRequest
    session: AgentSessionState
    invocations: List[AgentToolInvocation] = field(default_factory=list)
    response: Optional[LLMResponse] = None
    approval_request_id: Optional[str] = None


class _LoopState(TypedDict):
    """Mutable LangGraph state for a single run.

    Required keys:

    - ``scope``: the shared ``_RunScope``.
    - ``run_iterations``: model turns taken by this run.

    Optional keys:

    - ``pending_calls``: tool calls from the latest assistant message.
    - ``exhausted``: set when the iteration budget ran out.
    - ``result``: the terminal ``AgentRunResult``; ends the graph.
    """

    scope: Required[_RunScope]
    run_iterations: Required[int]
    pending_calls: NotRequired[List[ToolCallPart]]
    exhausted: NotRequired[bool]
    result: NotRequired[Optional[AgentRunResult]]
