from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from helmsman_ai.agent_core.memory import (
    InMemoryAgentMemory,
    digest_entries,
    entry_from_message,
    message_text,
    track_message_in_memory,
)
from helmsman_ai.agent_core.schemas import (
    AgentMemoryEntry,
    AgentSessionState,
    LLMMessage,
    MemoryEntryType,
    MessageRole,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)


def _session(*messages: LLMMessage) -> AgentSessionState:
    return AgentSessionState(session_id="s1", agent="support", version="1", messages=list(messages))


def _entry(text: str, kind: MemoryEntryType = MemoryEntryType.user) -> AgentMemoryEntry:
    return AgentMemoryEntry(type=kind, content=text)


def test_message_text_extracts_all_part_kinds():
    msg = LLMMessage(
        role=MessageRole.assistant,
        content=[
            TextPart(text="Looking it up."),
            ToolCallPart(id="c1", name="search_docs", arguments='{"query": "x"}'),
        ],
    )
    assert message_text(msg) == 'Looking it up.\nsearch_docs({"query": "x"})'

    result = LLMMessage(role=MessageRole.tool, content=[ToolResultPart(tool_call_id="c1", output='{"hits": 1}')])
    assert message_text(result) == '{"hits": 1}'


def test_entry_from_message_maps_role_and_metadata():
    msg = LLMMessage(
        role=MessageRole.tool,
        name="search_docs",
        tool_call_id="c1",
        content=[ToolResultPart(tool_call_id="c1", output="{}")],
    )

    entry = entry_from_message(msg)

    assert entry.type == MemoryEntryType.tool
    assert entry.metadata == {"name": "search_docs", "tool_call_id": "c1"}


def test_digest_entries_uses_recent_window():
    entries = [_entry(f"m{i}") for i in range(5)]

    assert digest_entries(entries, 2) == "user: m3\nuser: m4"
    assert digest_entries(entries, 0) == ""


@pytest.mark.asyncio
async def test_first_append_bootstraps_from_session_history():
    memory = InMemoryAgentMemory()
    session = _session(
        LLMMessage.text(MessageRole.user, "hello"),
        LLMMessage.text(MessageRole.assistant, "hi there"),
    )

    snapshot = await memory.append(session, _entry("next question"))

    assert [e.content for e in snapshot.entries] == ["hello", "hi there", "next question"]
    assert [e.type for e in snapshot.entries][:2] == [MemoryEntryType.user, MemoryEntryType.assistant]


@pytest.mark.asyncio
async def test_track_message_before_append_does_not_duplicate():
    memory = InMemoryAgentMemory()
    session = _session()
    message = LLMMessage.text(MessageRole.user, "hello")

    await track_message_in_memory(memory, session, message)
    session.messages.append(message)
    await track_message_in_memory(memory, session, LLMMessage.text(MessageRole.assistant, "hi"))

    snapshot = await memory.load("s1")
    assert snapshot is not None
    assert [e.content for e in snapshot.entries] == ["hello", "hi"]


@pytest.mark.asyncio
async def test_track_message_without_manager_is_noop():
    assert await track_message_in_memory(None, _session(), LLMMessage.text(MessageRole.user, "x")) is None


@pytest.mark.asyncio
async def test_entries_trimmed_to_max():
    memory = InMemoryAgentMemory(max_entries=3, summarize_every=0)
    session = _session()
    for i in range(5):
        await memory.append(session, _entry(f"m{i}"))

    snapshot = await memory.load("s1")
    assert [e.content for e in snapshot.entries] == ["m2", "m3", "m4"]


@pytest.mark.asyncio
async def test_summary_refreshed_every_n_appends():
    memory = InMemoryAgentMemory(summary_window=2, summarize_every=3)
    session = _session()

    for i in range(2):
        snapshot = await memory.append(session, _entry(f"m{i}"))
    assert snapshot.summary is None
    assert snapshot.appended_since_summary == 2

    snapshot = await memory.append(session, _entry("m2"))
    assert snapshot.summary == "user: m1\nuser: m2"
    assert snapshot.appended_since_summary == 0
    assert snapshot.last_summarized_at is not None


@pytest.mark.asyncio
async def test_explicit_summarize():
    memory = InMemoryAgentMemory(summary_window=1, summarize_every=0)
    session = _session(LLMMessage.text(MessageRole.user, "only message"))

    snapshot = await memory.summarize(session)

    assert snapshot is not None
    assert snapshot.summary == "user: only message"
    assert await memory.summarize(_session()) is None


@pytest.mark.asyncio
async def test_expired_memory_is_dropped_on_load():
    memory = InMemoryAgentMemory(ttl_minutes=1)
    session = _session()
    snapshot = await memory.append(session, _entry("old"))

    snapshot.updated_at = datetime.now(timezone.utc) - timedelta(minutes=5)
    await memory.save(snapshot)

    assert await memory.load("s1") is None


@pytest.mark.asyncio
async def test_prune_expires_and_trims():
    memory = InMemoryAgentMemory(max_entries=10, ttl_minutes=1, summarize_every=0)
    session = _session()
    snapshot = await memory.append(session, _entry("old"))
    snapshot.updated_at = datetime.now(timezone.utc) - timedelta(minutes=5)
    await memory.save(snapshot)

    await memory.prune(session)

    assert await memory.load("s1") is None


@pytest.mark.asyncio
async def test_loaded_snapshot_is_a_copy():
    memory = InMemoryAgentMemory()
    session = _session()
    await memory.append(session, _entry("a"))

    snapshot = await memory.load("s1")
    snapshot.entries.clear()

    assert len((await memory.load("s1")).entries) == 1


@pytest.mark.asyncio
async def test_clear_removes_session_memory():
    memory = InMemoryAgentMemory()
    await memory.append(_session(), _entry("a"))

    await memory.clear("s1")

    assert await memory.load("s1") is None
