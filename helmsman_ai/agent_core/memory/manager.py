"""Conversational memory accumulated per session.

Memory is a normalized, append-only view of a session's conversation, distinct
from the raw message log kept by the session store. It exists so long
conversations can be summarized and pruned without touching the audit trail.

- The first time memory is touched for a session with nothing stored, entries
  are bootstrapped from the session's existing messages.
- ``summarize`` is pluggable; the reference digest joins the most recent
  entries as ``"type: content"`` lines. It runs opportunistically every
  ``summarize_every`` appended entries, not on every turn.
- ``InMemoryAgentMemory`` trims the oldest entries past ``max_entries`` and
  expires whole sessions after ``ttl_minutes`` when they are next accessed.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from helmsman_ai.core.logging_config import get_logger

from ..schemas.domain import AgentMemoryEntry, AgentMemorySnapshot, AgentSessionState, MemoryEntryType
from ..schemas.messages import LLMMessage, TextPart, ToolCallPart, ToolResultPart

logger = get_logger(__name__)


@runtime_checkable
class AgentMemoryManager(Protocol):
    """Pluggable per-session memory backend."""

    async def load(self, session_id: str) -> Optional[AgentMemorySnapshot]: ...

    async def save(self, snapshot: AgentMemorySnapshot) -> None: ...

    async def append(self, session: AgentSessionState, entry: AgentMemoryEntry) -> AgentMemorySnapshot: ...

    async def summarize(self, session: AgentSessionState) -> Optional[AgentMemorySnapshot]: ...

    async def prune(self, session: AgentSessionState) -> None: ...


def message_text(message: LLMMessage) -> str:
    """Extract the textual content of a message from its structured parts."""
    chunks: List[str] = []
    for part in message.content:
        if isinstance(part, TextPart):
            chunks.append(part.text)
        elif isinstance(part, ToolResultPart):
            chunks.append(part.output)
        elif isinstance(part, ToolCallPart):
            args = part.arguments if isinstance(part.arguments, str) else json.dumps(part.arguments, default=str)
            chunks.append(f"{part.name}({args or ''})")
    return "\n".join(c for c in chunks if c).strip()


def entry_from_message(message: LLMMessage) -> AgentMemoryEntry:
    """Normalize a chat message into a memory entry (role maps to entry type)."""
    metadata: Dict[str, Any] = {}
    if message.name:
        metadata["name"] = message.name
    if message.tool_call_id:
        metadata["tool_call_id"] = message.tool_call_id
    return AgentMemoryEntry(
        type=MemoryEntryType(message.role.value),
        content=message_text(message),
        metadata=metadata,
    )


def digest_entries(entries: List[AgentMemoryEntry], window: int) -> str:
    """Reference summary: the most recent ``window`` entries as ``type: content`` lines."""
    recent = entries[-window:] if window > 0 else []
    return "\n".join(f"{e.type.value}: {e.content}" for e in recent)


class BaseAgentMemoryManager(ABC):
    """Shared append/bootstrap/summarize flow; subclasses provide storage."""

    def __init__(self, *, summary_window: int = 10, summarize_every: int = 20) -> None:
        self._summary_window = summary_window
        self._summarize_every = summarize_every

    @abstractmethod
    async def load(self, session_id: str) -> Optional[AgentMemorySnapshot]: ...

    @abstractmethod
    async def save(self, snapshot: AgentMemorySnapshot) -> None: ...

    @abstractmethod
    async def prune(self, session: AgentSessionState) -> None: ...

    async def append(self, session: AgentSessionState, entry: AgentMemoryEntry) -> AgentMemorySnapshot:
        snapshot = await self._load_or_bootstrap(session)
        snapshot.entries.append(entry)
        snapshot.appended_since_summary += 1
        snapshot.updated_at = datetime.now(timezone.utc)
        if self._summarize_every and snapshot.appended_since_summary >= self._summarize_every:
            self._apply_summary(snapshot, session)
        await self.save(snapshot)
        return snapshot

    async def summarize(self, session: AgentSessionState) -> Optional[AgentMemorySnapshot]:
        snapshot = await self._load_or_bootstrap(session)
        if not snapshot.entries:
            return None
        self._apply_summary(snapshot, session)
        await self.save(snapshot)
        return snapshot

    def build_summary(self, entries: List[AgentMemoryEntry], session: AgentSessionState) -> str:
        """Produce the digest text; override for model-backed summarization."""
        return digest_entries(entries, self._summary_window)

    def _apply_summary(self, snapshot: AgentMemorySnapshot, session: AgentSessionState) -> None:
        snapshot.summary = self.build_summary(snapshot.entries, session)
        snapshot.last_summarized_at = datetime.now(timezone.utc)
        snapshot.appended_since_summary = 0
        logger.debug(f"Summarized memory for session {snapshot.session_id} ({len(snapshot.entries)} entries)")

    async def _load_or_bootstrap(self, session: AgentSessionState) -> AgentMemorySnapshot:
        snapshot = await self.load(session.session_id)
        if snapshot is not None:
            return snapshot
        entries = [entry_from_message(m) for m in session.messages]
        logger.debug(f"Bootstrapped memory for session {session.session_id} from {len(entries)} messages")
        return AgentMemorySnapshot(session_id=session.session_id, entries=entries)


class InMemoryAgentMemory(BaseAgentMemoryManager):
    """
    Bounded in-process memory store for development and tests.

    Args:
        max_entries: Keep at most this many entries per session (oldest dropped first).
        ttl_minutes: Expire a session's memory when it has not been updated for this long.
        summary_window: Entries included in the reference digest.
        summarize_every: Refresh the summary after this many appends (0 disables).
    """

    def __init__(
        self,
        *,
        max_entries: int = 100,
        ttl_minutes: Optional[float] = 60.0,
        summary_window: int = 10,
        summarize_every: int = 20,
    ) -> None:
        super().__init__(summary_window=summary_window, summarize_every=summarize_every)
        self._max_entries = max_entries
        self._ttl = timedelta(minutes=ttl_minutes) if ttl_minutes else None
        self._snapshots: Dict[str, AgentMemorySnapshot] = {}

    def _expired(self, snapshot: AgentMemorySnapshot) -> bool:
        if self._ttl is None:
            return False
        return datetime.now(timezone.utc) - snapshot.updated_at > self._ttl

    async def load(self, session_id: str) -> Optional[AgentMemorySnapshot]:
        snapshot = self._snapshots.get(session_id)
        if snapshot is None:
            return None
        if self._expired(snapshot):
            logger.debug(f"Memory for session {session_id} expired")
            del self._snapshots[session_id]
            return None
        return snapshot.model_copy(deep=True)

    async def save(self, snapshot: AgentMemorySnapshot) -> None:
        stored = snapshot.model_copy(deep=True)
        if len(stored.entries) > self._max_entries:
            stored.entries = stored.entries[-self._max_entries :]
        self._snapshots[stored.session_id] = stored

    async def prune(self, session: AgentSessionState) -> None:
        snapshot = self._snapshots.get(session.session_id)
        if snapshot is None:
            return
        if self._expired(snapshot):
            del self._snapshots[session.session_id]
            return
        if len(snapshot.entries) > self._max_entries:
            snapshot.entries = snapshot.entries[-self._max_entries :]

    async def clear(self, session_id: str) -> None:
        self._snapshots.pop(session_id, None)


async def track_message_in_memory(
    manager: Optional[AgentMemoryManager],
    session: AgentSessionState,
    message: LLMMessage,
) -> Optional[AgentMemorySnapshot]:
    """
    Mirror a chat message into memory.

    Call this before the message is appended to ``session`` so a bootstrap from
    the session history does not record it twice.
    """
    if manager is None:
        return None
    return await manager.append(session, entry_from_message(message))
