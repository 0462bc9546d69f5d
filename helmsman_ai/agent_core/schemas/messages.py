"""Chat message model exchanged with the model provider.

Messages carry a role and an ordered list of typed content parts. The three
part kinds are discriminated by ``type``:

- ``text``: plain text.
- ``tool-call``: a request from the assistant to run a named tool.
- ``tool-result``: the serialized output of a tool call, keyed by call id.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from .base import BaseSchema


class MessageRole(str, Enum):
    system = "system"
    user = "user"
    assistant = "assistant"
    tool = "tool"


class TextPart(BaseSchema):
    type: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseSchema):
    type: Literal["tool-call"] = "tool-call"
    id: str
    name: str
    arguments: Any = Field(default=None, description="Raw argument payload, usually a JSON string.")


class ToolResultPart(BaseSchema):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    output: str


ContentPart = Annotated[Union[TextPart, ToolCallPart, ToolResultPart], Field(discriminator="type")]


class LLMMessage(BaseSchema):
    role: MessageRole
    content: List[ContentPart] = Field(default_factory=list)
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def text(cls, role: MessageRole, text: str, **kwargs: Any) -> "LLMMessage":
        """Build a message holding a single text part."""
        return cls(role=role, content=[TextPart(text=text)], **kwargs)

    def tool_calls(self) -> List[ToolCallPart]:
        """Return the tool-call parts in the order they appear."""
        return [part for part in self.content if isinstance(part, ToolCallPart)]

    def plain_text(self) -> str:
        """Concatenate the text parts and strip surrounding whitespace."""
        return "".join(part.text for part in self.content if isinstance(part, TextPart)).strip()


class ToolDefinition(BaseSchema):
    """Tool description exposed to the model provider."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})


class LLMChatOptions(BaseSchema):
    tools: List[ToolDefinition] = Field(default_factory=list)
    metadata: Dict[str, str] = Field(default_factory=dict)
    user_id: Optional[str] = None


class LLMUsage(BaseSchema):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMResponse(BaseSchema):
    message: LLMMessage
    finish_reason: Optional[str] = None
    usage: Optional[LLMUsage] = None
