"""Repository interfaces and in-memory implementations for agent persistence.

The repository layer is the persistence boundary for the agent runner.

Responsibilities
----------------

- Provide async repository interfaces (Protocols) the runner and the approval
  workflow depend on.
- Persist auditable session state:

  - ordered message history,
  - tool invocation steps,
  - status, iteration count and last confidence,
  - approval requests and their resolutions.

Design notes
------------

The runner is written against interfaces so it can be used with:

- the bounded in-memory implementations in ``repos.in_memory`` (development and tests),
- future persistence backends.
"""

from .in_memory import InMemoryAgentSessionStore, InMemoryApprovalStore
from .interfaces import AgentSessionStore, ApprovalStore

__all__ = [
    "AgentSessionStore",
    "ApprovalStore",
    "InMemoryAgentSessionStore",
    "InMemoryApprovalStore",
]
