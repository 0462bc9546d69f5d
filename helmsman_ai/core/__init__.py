"""
Core utilities and configuration for Helmsman-AI.

This package provides core functionality including logging configuration,
settings, and Logfire monitoring helpers.
"""

from helmsman_ai.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
