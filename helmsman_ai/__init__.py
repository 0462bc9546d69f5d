"""Helmsman-AI: a bounded, auditable agent orchestration loop."""
