"""Per-session conversational memory (accumulation, summarization, pruning)."""

from .manager import (
    AgentMemoryManager,
    BaseAgentMemoryManager,
    InMemoryAgentMemory,
    digest_entries,
    entry_from_message,
    message_text,
    track_message_in_memory,
)

__all__ = [
    "AgentMemoryManager",
    "BaseAgentMemoryManager",
    "InMemoryAgentMemory",
    "digest_entries",
    "entry_from_message",
    "message_text",
    "track_message_in_memory",
]
