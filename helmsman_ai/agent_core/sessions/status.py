"""Session status state machine.

``AgentSessionState.status`` only changes through ``transition``. The allowed
moves are:

- ``running -> running`` (a tool turn),
- ``running -> completed | escalated | failed`` (terminal outcomes),
- ``completed | escalated | failed -> running`` only with ``resume=True``, when a
  later ``run`` re-opens the session.

Everything else raises ``InvalidStatusTransitionError``.
"""

from __future__ import annotations

from typing import FrozenSet

from ..errors import InvalidStatusTransitionError
from ..schemas.domain import SessionStatus

TERMINAL_STATUSES: FrozenSet[SessionStatus] = frozenset(
    {SessionStatus.completed, SessionStatus.escalated, SessionStatus.failed}
)


def is_terminal(status: SessionStatus) -> bool:
    return SessionStatus(status) in TERMINAL_STATUSES


def can_transition(current: SessionStatus, target: SessionStatus, *, resume: bool = False) -> bool:
    current = SessionStatus(current)
    target = SessionStatus(target)
    if current == SessionStatus.running:
        return True
    return resume and target == SessionStatus.running


def transition(current: SessionStatus, target: SessionStatus, *, resume: bool = False) -> SessionStatus:
    """
    Validate a status change and return the new status.

    Args:
        current: The session's status.
        target: The requested status.
        resume: Allow re-opening a terminal session.

    Raises:
        InvalidStatusTransitionError: If the move is not allowed.
    """
    if not can_transition(current, target, resume=resume):
        raise InvalidStatusTransitionError(SessionStatus(current).value, SessionStatus(target).value)
    return SessionStatus(target)
