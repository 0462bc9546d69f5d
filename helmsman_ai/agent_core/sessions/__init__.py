"""Session lifecycle helpers: the status transition function and per-session locks."""

from .locks import SessionLockTable
from .status import TERMINAL_STATUSES, can_transition, is_terminal, transition

__all__ = [
    "SessionLockTable",
    "TERMINAL_STATUSES",
    "can_transition",
    "is_terminal",
    "transition",
]
