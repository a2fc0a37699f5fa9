"""Orchestration layer for developer/QA agent sessions."""

from .collaboration import CollaborationSession
from .conversation import ConversationHistory, Session
from .invocation import Deadline, InvocationOutcome, invoke_agent
from .negotiation import NegotiationSession
from .strategies import (
    ROLE_ASSIGNMENTS,
    RoleAssignment,
    aggregate_feedback,
    has_outstanding_issues,
    requests_clarification,
)

__all__ = [
    "CollaborationSession",
    "ConversationHistory",
    "Deadline",
    "InvocationOutcome",
    "NegotiationSession",
    "ROLE_ASSIGNMENTS",
    "RoleAssignment",
    "Session",
    "aggregate_feedback",
    "has_outstanding_issues",
    "invoke_agent",
    "requests_clarification",
]
