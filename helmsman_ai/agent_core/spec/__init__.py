"""Agent definitions and their registry.

- ``AgentSpec``: immutable definition (instructions, tools, policy, knowledge, memory bounds).
- ``define_agent``: validate a definition, raising ``AgentSpecValidationError`` on failure.
- ``AgentRegistry``: name/version lookup; ``require`` resolves the highest version by default.
"""

from .models import (
    AgentKnowledgeRef,
    AgentMemoryConfig,
    AgentPolicy,
    AgentSpec,
    AgentToolConfig,
    ConfidencePolicy,
    EscalationPolicy,
    define_agent,
)
from .registry import AgentRegistry
from .render import render_knowledge_index, render_spec_markdown

__all__ = [
    "AgentKnowledgeRef",
    "AgentMemoryConfig",
    "AgentPolicy",
    "AgentSpec",
    "AgentToolConfig",
    "ConfidencePolicy",
    "EscalationPolicy",
    "define_agent",
    "AgentRegistry",
    "render_knowledge_index",
    "render_spec_markdown",
]
