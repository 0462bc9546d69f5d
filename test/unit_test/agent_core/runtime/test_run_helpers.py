from __future__ import annotations

import json

import pytest
from pydantic import BaseModel

from helmsman_ai.agent_core.runtime import (
    build_system_prompt,
    derive_confidence,
    extract_tool_calls,
    get_assistant_text,
    safe_parse,
    serialize_output,
    should_escalate,
)
from helmsman_ai.agent_core.schemas import LLMMessage, LLMResponse, MessageRole, TextPart, ToolCallPart
from helmsman_ai.agent_core.spec import AgentPolicy, define_agent


def _response(metadata=None) -> LLMResponse:
    return LLMResponse(message=LLMMessage.text(MessageRole.assistant, "Answer", metadata=metadata or {}))


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, {}),
        ("", {}),
        ("   ", {}),
        ('{"query": "x"}', {"query": "x"}),
        ("[1, 2]", [1, 2]),
        ("not json", "not json"),
        ({"query": "x"}, {"query": "x"}),
    ],
)
def test_safe_parse(raw, expected):
    assert safe_parse(raw) == expected


@pytest.mark.parametrize(
    "metadata,expected",
    [
        ({"confidence": "0.9"}, 0.9),
        ({"Confidence": "0.3"}, 0.3),
        ({"confidence": 0.8}, 0.8),
        ({"confidence": "1.7"}, 1.0),
        ({"confidence": "-2"}, 0.0),
        ({"confidence": "inf"}, 1.0),
        ({"confidence": "0"}, 0.0),
    ],
)
def test_derive_confidence_parses_and_clamps(metadata, expected):
    assert derive_confidence(_response(metadata), AgentPolicy()) == pytest.approx(expected)


@pytest.mark.parametrize(
    "metadata",
    [{}, {"confidence": ""}, {"confidence": "high"}, {"confidence": "nan"}, {"confidence": None}, {"confidence": True}],
)
def test_derive_confidence_falls_back(metadata):
    assert derive_confidence(_response(metadata), AgentPolicy()) == 0.5
    policy = AgentPolicy.model_validate({"confidence": {"default": 0.8}})
    assert derive_confidence(_response(metadata), policy) == 0.8


def test_derive_confidence_without_response():
    assert derive_confidence(None, AgentPolicy()) == 0.5


def test_should_escalate_uses_threshold():
    policy = AgentPolicy.model_validate({"escalation": {"confidence_threshold": 0.7}})

    assert should_escalate(0.5, policy) is True
    assert should_escalate(0.7, policy) is False
    assert should_escalate(0.9, policy) is False


def test_extract_tool_calls_and_text():
    msg = LLMMessage(
        role=MessageRole.assistant,
        content=[
            TextPart(text=" Checking "),
            ToolCallPart(id="c1", name="a"),
            ToolCallPart(id="c2", name="b"),
        ],
    )

    assert [c.id for c in extract_tool_calls(msg)] == ["c1", "c2"]
    assert get_assistant_text(msg) == "Checking"
    assert extract_tool_calls(None) == []
    assert get_assistant_text(None) == ""


class _Hit(BaseModel):
    title: str


def test_serialize_output():
    assert serialize_output(None) == "{}"
    assert json.loads(serialize_output({"hits": [1]})) == {"hits": [1]}
    assert json.loads(serialize_output(_Hit(title="doc"))) == {"title": "doc"}
    assert serialize_output("plain") == '"plain"'


def test_build_system_prompt_joins_non_empty_parts():
    spec = define_agent(
        name="support",
        version="1",
        instructions="Answer support questions.",
        tools=[{"name": "search_docs"}],
        knowledge=[{"key": "faq", "category": "canonical"}],
    )

    prompt = build_system_prompt(spec, base_prompt="Base.", instructions_override="Be brief.")

    assert prompt.split("\n\n") == [
        "Base.",
        "Answer support questions.",
        "Be brief.",
        "Knowledge spaces available:\n- faq (category: canonical)",
    ]
    assert build_system_prompt(spec.model_copy(update={"knowledge": ()})) == "Answer support questions."
