"""LangGraph-based run loop for agents.

 The runtime takes an ``AgentRunRequest``, resolves the agent definition and
 drives the session with strong guarantees:

 - every declared tool has a handler before the first model call;
 - tool calls run sequentially, in the order the model issued them, and each
   gets exactly one tool-result message;
 - the iteration budget bounds every run, ending in ``failed`` when spent.

 The main entry point is ``AgentRunner``.
 """

from .helpers import (
    build_system_prompt,
    derive_confidence,
    extract_tool_calls,
    get_assistant_text,
    safe_parse,
    serialize_output,
    should_escalate,
)
from .models import AgentRunRequest, AgentRunResult
from .runner import AgentRunner

__all__ = [
    "AgentRunner",
    "AgentRunRequest",
    "AgentRunResult",
    "build_system_prompt",
    "derive_confidence",
    "extract_tool_calls",
    "get_assistant_text",
    "safe_parse",
    "serialize_output",
    "should_escalate",
]
