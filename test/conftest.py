from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, List, Tuple

import pytest

# Load dotenv files early so settings fixtures see test overrides
try:  # pragma: no cover
    from dotenv import load_dotenv

    TEST_ROOT = Path(__file__).resolve().parent
    # Load test/.env first, then fallback to test/.env.example for defaults
    load_dotenv(TEST_ROOT / ".env", override=False)
    load_dotenv(TEST_ROOT / ".env.example", override=False)
except Exception:
    pass

from helmsman_ai.core.config import Settings


@pytest.fixture
def test_config() -> Settings:
    """Fixture providing a fresh settings model bound to the current environment.

    Returns:
        Settings: Application settings with test overrides loaded
    """
    return Settings()


@pytest.fixture
def settings_factory(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Build ``Settings`` after setting the given environment variables."""

    def _factory(**env: str) -> Settings:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return Settings()

    return _factory


class EventRecorder:
    """Async event sink collecting ``(event, payload)`` pairs."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []

    async def __call__(self, event: str, payload: Any) -> None:
        self.events.append((event, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def event_recorder() -> EventRecorder:
    return EventRecorder()
