"""Approval workflow for escalations and approval-gated tool calls."""

from .workflow import ApprovalWorkflow

__all__ = ["ApprovalWorkflow"]
