"""Pydantic schemas shared across the agent core.

- ``messages``: the provider-facing chat message model (roles and typed parts).
- ``domain``: sessions, tool invocations, approvals, memory entries and events.
"""

from .base import BaseSchema, FrozenSchema
from .domain import (
    AgentEventName,
    AgentEventPayload,
    AgentMemoryEntry,
    AgentMemorySnapshot,
    AgentSessionState,
    AgentToolInvocation,
    ApprovalRequest,
    ApprovalStatus,
    MemoryEntryType,
    SessionStatus,
)
from .messages import (
    LLMChatOptions,
    LLMMessage,
    LLMResponse,
    LLMUsage,
    MessageRole,
    TextPart,
    ToolCallPart,
    ToolDefinition,
    ToolResultPart,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "AgentEventName",
    "AgentEventPayload",
    "AgentMemoryEntry",
    "AgentMemorySnapshot",
    "AgentSessionState",
    "AgentToolInvocation",
    "ApprovalRequest",
    "ApprovalStatus",
    "MemoryEntryType",
    "SessionStatus",
    "LLMChatOptions",
    "LLMMessage",
    "LLMResponse",
    "LLMUsage",
    "MessageRole",
    "TextPart",
    "ToolCallPart",
    "ToolDefinition",
    "ToolResultPart",
]
