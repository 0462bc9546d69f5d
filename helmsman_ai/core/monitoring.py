"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for monitoring agent runs:
- Agent run start/completion records
- Tool invocation timing and outcome
- Error tracking with context

Logfire is optional at runtime. Every helper degrades to a DEBUG log line when
Logfire is disabled, not configured, or fails.
"""

import logging
from typing import Any, Optional

from helmsman_ai.core.config import LogfireConfig, settings

logger = logging.getLogger(__name__)

_logfire_initialized = False


def initialize_logfire(config: Optional[LogfireConfig] = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    The initialization is conditional on ``LOGFIRE_ENABLED`` and ``LOGFIRE_TOKEN``.

    Args:
        config: Explicit Logfire configuration; defaults to the application settings.

    Returns:
        True if Logfire is ready to receive records, False otherwise.
    """
    global _logfire_initialized

    cfg = config or settings.logfire
    if not cfg.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not cfg.token:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return False

    try:
        import logfire

        logfire.configure(
            token=cfg.token,
            service_name=cfg.service_name,
            service_version=cfg.service_version,
            environment=cfg.environment,
        )
        _logfire_initialized = True
        logger.info(
            f"Logfire monitoring initialized: service={cfg.service_name}, environment={cfg.environment}"
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        _logfire_initialized = False
    return _logfire_initialized


def is_logfire_enabled() -> bool:
    """Return whether ``initialize_logfire`` succeeded in this process."""
    return _logfire_initialized


def _emit(level: str, message: str, **attributes: Any) -> None:
    if not _logfire_initialized:
        logger.debug(f"{message}: {attributes}")
        return
    try:
        import logfire

        getattr(logfire, level)(message, **attributes)
    except Exception:
        logger.debug(f"Could not send record to Logfire: {message}")


def log_agent_run(session_id: str, agent: str, tenant_id: Optional[str], iteration_budget: int) -> None:
    """
    Log the start of an agent run with context.

    Args:
        session_id: The session the run is attached to
        agent: The agent name
        tenant_id: The tenant identifier, if any
        iteration_budget: Maximum model turns allowed for the run
    """
    _emit(
        "info",
        "Agent run started",
        session_id=session_id,
        agent=agent,
        tenant_id=tenant_id,
        iteration_budget=iteration_budget,
    )


def log_agent_completion(session_id: str, status: str, finish_reason: str, duration_ms: float) -> None:
    """
    Log the completion of an agent run.

    Args:
        session_id: The session the run is attached to
        status: The terminal session status (completed, escalated, failed)
        finish_reason: Provider finish reason or the loop's own reason
        duration_ms: The duration of the run in milliseconds
    """
    _emit(
        "info",
        "Agent run completed",
        session_id=session_id,
        status=status,
        finish_reason=finish_reason,
        duration_ms=duration_ms,
    )


def log_tool_invocation(tool_name: str, success: bool, duration_ms: float, error: Optional[str] = None) -> None:
    """
    Log a single tool invocation.

    Args:
        tool_name: The tool that ran
        success: Whether the handler returned normally within its deadline
        duration_ms: Wall-clock duration of the call
        error: Error text for failed invocations
    """
    _emit(
        "info" if success else "warn",
        "Tool invocation completed",
        tool_name=tool_name,
        success=success,
        duration_ms=duration_ms,
        error=error,
    )


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    _emit("error", f"{error_type}: {error_message}", **(context or {}))
