"""Pure helpers used by the run loop.

Kept free of I/O so they can be tested in isolation:

- ``extract_tool_calls`` / ``get_assistant_text`` read an assistant message.
- ``safe_parse`` turns a raw tool-call argument payload into a value.
- ``derive_confidence`` / ``should_escalate`` implement the confidence policy.
- ``serialize_output`` renders a tool result for a tool-result message.
- ``build_system_prompt`` assembles the synthesized system prompt.
"""

from __future__ import annotations

import json
import math
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from ..schemas.messages import LLMMessage, LLMResponse, ToolCallPart
from ..spec.models import AgentPolicy, AgentSpec
from ..spec.render import render_knowledge_index

FALLBACK_CONFIDENCE = 0.5
CONFIDENCE_METADATA_KEYS = ("confidence", "Confidence")


def extract_tool_calls(message: Optional[LLMMessage]) -> List[ToolCallPart]:
    if message is None:
        return []
    return message.tool_calls()


def get_assistant_text(message: Optional[LLMMessage]) -> str:
    if message is None:
        return ""
    return message.plain_text()


def safe_parse(raw: Any) -> Any:
    """
    Best-effort decode of a tool-call argument payload.

    ``None`` and empty strings become ``{}``; mappings pass through; strings are
    decoded as JSON, falling back to the raw string when they are not valid JSON.
    """
    if raw is None:
        return {}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    if isinstance(raw, Mapping):
        return dict(raw)
    return raw


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _read_confidence(metadata: Mapping[str, Any]) -> Optional[float]:
    for key in CONFIDENCE_METADATA_KEYS:
        raw = metadata.get(key)
        if raw is None or isinstance(raw, bool):
            continue
        if isinstance(raw, str):
            raw = raw.strip()
            if not raw:
                continue
        try:
            value = float(raw)
        except (TypeError, ValueError):
            continue
        if math.isnan(value):
            continue
        return value
    return None


def derive_confidence(response: Optional[LLMResponse], policy: AgentPolicy) -> float:
    """
    Derive the confidence of a final response, always within ``[0, 1]``.

    Reads the provider-reported ``confidence`` metadata field of the assistant
    message. Absent or unparsable values fall back to the policy default, or 0.5.
    """
    value: Optional[float] = None
    if response is not None:
        value = _read_confidence(response.message.metadata)
    if value is None:
        value = policy.confidence.default if policy.confidence.default is not None else FALLBACK_CONFIDENCE
    return _clamp(value)


def should_escalate(confidence: float, policy: AgentPolicy) -> bool:
    return confidence < policy.escalation_threshold


def serialize_output(result: Any) -> str:
    """Serialize a tool result to the JSON text stored in a tool-result part."""
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json")
    if result is None:
        result = {}
    return json.dumps(result, default=str)


def build_system_prompt(
    spec: AgentSpec,
    *,
    base_prompt: Optional[str] = None,
    instructions_override: Optional[str] = None,
) -> str:
    """Join base prompt, agent instructions, override and knowledge index with blank lines."""
    parts = [base_prompt, spec.instructions, instructions_override, render_knowledge_index(spec)]
    return "\n\n".join(p.strip() for p in parts if p and p.strip())
