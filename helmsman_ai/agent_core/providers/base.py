from __future__ import annotations

"""Model provider contract.

The runner never talks to a model SDK directly. Anything with an async
``chat(messages, options)`` returning an ``LLMResponse`` can drive an agent:
SDK adapters live outside this package, tests use scripted fakes.
"""

from typing import List, Protocol, runtime_checkable

from ..schemas.messages import LLMChatOptions, LLMMessage, LLMResponse


@runtime_checkable
class ModelProvider(Protocol):
    async def chat(self, messages: List[LLMMessage], options: LLMChatOptions) -> LLMResponse:
        """
        Run one chat completion.

        Args:
            messages: System prompt followed by the session history.
            options: Tools the model may call, request metadata and the acting user.

        Returns:
            The assistant message, finish reason and token usage.
        """
        ...
