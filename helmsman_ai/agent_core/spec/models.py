"""Immutable agent definitions.

An ``AgentSpec`` bundles everything the runner needs to drive an agent:
instructions, the ordered tool declarations, the confidence/escalation policy,
knowledge references and memory bounds.

Specs are validated when they are constructed. ``define_agent`` converts
pydantic validation failures into ``AgentSpecValidationError`` (or
``DuplicateToolError``) so an invalid definition never reaches a run.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_core import PydanticCustomError

from ..errors import AgentSpecValidationError, DuplicateToolError
from ..schemas.base import FrozenSchema
from ..schemas.messages import ToolDefinition


def _require_text(value: str, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value


class AgentToolConfig(FrozenSchema):
    """Declaration of a tool the agent may call."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})
    timeout_ms: Optional[int] = Field(default=None, ge=1, description="Overrides the handler's deadline.")
    automation_safe: bool = True
    requires_approval: Optional[bool] = Field(
        default=None,
        description="Gate calls behind an approval request. Defaults to ``not automation_safe``.",
    )
    cooldown_ms: Optional[int] = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        return _require_text(v, "tool name")

    @property
    def needs_approval(self) -> bool:
        if self.requires_approval is not None:
            return self.requires_approval
        return not self.automation_safe

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(name=self.name, description=self.description, parameters=dict(self.parameters))


class ConfidencePolicy(FrozenSchema):
    min: float = Field(default=0.7, ge=0.0, le=1.0)
    default: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class EscalationPolicy(FrozenSchema):
    confidence_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    on_tool_failure: bool = False
    on_timeout: bool = False
    approval_workflow: Optional[str] = Field(
        default=None, description="Name of the approval workflow that reviews escalations."
    )


class AgentPolicy(FrozenSchema):
    confidence: ConfidencePolicy = Field(default_factory=ConfidencePolicy)
    escalation: EscalationPolicy = Field(default_factory=EscalationPolicy)

    @property
    def escalation_threshold(self) -> float:
        """Confidence below this value escalates; falls back to ``confidence.min``."""
        if self.escalation.confidence_threshold is not None:
            return self.escalation.confidence_threshold
        return self.confidence.min


class AgentKnowledgeRef(FrozenSchema):
    key: str
    category: Optional[str] = None
    required: bool = False
    instructions: Optional[str] = None


class AgentMemoryConfig(FrozenSchema):
    max_entries: Optional[int] = Field(default=None, ge=1)
    ttl_minutes: Optional[float] = Field(default=None, gt=0)
    summary_window: Optional[int] = Field(default=None, ge=1)


class AgentSpec(FrozenSchema):
    name: str
    version: str
    instructions: str
    tools: Tuple[AgentToolConfig, ...]

    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    owners: Tuple[str, ...] = ()

    policy: AgentPolicy = Field(default_factory=AgentPolicy)
    knowledge: Tuple[AgentKnowledgeRef, ...] = ()
    memory: AgentMemoryConfig = Field(default_factory=AgentMemoryConfig)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("name", "version", "instructions")
    @classmethod
    def _not_blank(cls, v: str, info) -> str:
        return _require_text(v, info.field_name)

    @model_validator(mode="after")
    def _check_tools(self) -> "AgentSpec":
        if not self.tools:
            raise ValueError("an agent must declare at least one tool")
        seen: set[str] = set()
        for tool in self.tools:
            if tool.name in seen:
                raise PydanticCustomError(
                    "duplicate_tool",
                    "duplicate tool name '{tool}' in agent '{agent}'",
                    {"tool": tool.name, "agent": self.name},
                )
            seen.add(tool.name)
        return self

    @property
    def tool_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.tools)

    def get_tool(self, name: str) -> Optional[AgentToolConfig]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None


def define_agent(spec: AgentSpec | Mapping[str, Any] | None = None, **fields: Any) -> AgentSpec:
    """
    Validate and freeze an agent definition.

    Args:
        spec: An ``AgentSpec`` or a mapping of its fields. Keyword arguments are
            merged on top of a mapping.

    Returns:
        The validated, immutable ``AgentSpec``.

    Raises:
        DuplicateToolError: If two tools share a name.
        AgentSpecValidationError: For any other invalid field.
    """
    if isinstance(spec, AgentSpec) and not fields:
        return spec
    data: Dict[str, Any] = {}
    if isinstance(spec, AgentSpec):
        data.update(spec.model_dump())
    elif spec is not None:
        data.update(spec)
    data.update(fields)

    try:
        return AgentSpec.model_validate(data)
    except ValidationError as e:
        errors = e.errors()
        name = data.get("name") or "<unnamed>"
        if any(err.get("type") == "duplicate_tool" for err in errors):
            raise DuplicateToolError(
                f"Agent '{name}' declares duplicate tool names", errors=errors
            ) from e
        details = "; ".join(f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors)
        raise AgentSpecValidationError(f"Invalid agent spec '{name}': {details}", errors=errors) from e
