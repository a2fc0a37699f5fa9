"""Data models for requests, agent messages and session outcomes."""

from .messages import (
    AgentReply,
    Fix,
    GeneratedCode,
    GenerationRequest,
    NegotiationPrompt,
    ReviewReport,
    ReviewRequest,
)
from .request import AgentTurnRequest, ChatEntry, CollaborationRequest, NegotiationRequest
from .session import Result, SessionStatus, StopReason, Turn

__all__ = [
    "AgentReply",
    "AgentTurnRequest",
    "ChatEntry",
    "CollaborationRequest",
    "Fix",
    "GeneratedCode",
    "GenerationRequest",
    "NegotiationPrompt",
    "NegotiationRequest",
    "Result",
    "ReviewReport",
    "ReviewRequest",
    "SessionStatus",
    "StopReason",
    "Turn",
]
