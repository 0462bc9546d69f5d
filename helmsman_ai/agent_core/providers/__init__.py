"""Model provider contract consumed by the runner."""

from .base import ModelProvider

__all__ = ["ModelProvider"]
