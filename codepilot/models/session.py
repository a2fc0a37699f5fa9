"""Session outcome data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Lifecycle status of a session; everything but RUNNING is terminal."""
    RUNNING = "running"
    SUCCESS = "success"
    NEEDS_CLARIFICATION = "needs_clarification"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.RUNNING


class StopReason(Enum):
    """Why a session stopped."""
    NO_ISSUES = "no_issues"
    CLARIFICATION_REQUESTED = "clarification_requested"
    ROUND_BUDGET_EXHAUSTED = "round_budget_exhausted"
    AGENT_FAILURE = "agent_failure"


@dataclass(frozen=True)
class Turn:
    """
    A single recorded exchange in a session transcript.

    Attributes:
        role: Speaker (user, developer, qa, system)
        content: Produced artifact or text
        timestamp: When the turn was recorded (UTC)
        is_error: Whether the turn records a failed agent invocation
        metadata: Additional metadata about the turn
    """
    role: str
    content: str
    timestamp: datetime = field(default_factory=_utcnow)
    is_error: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)


@dataclass
class Result:
    """
    Final outcome of one orchestration call.

    Attributes:
        status: Terminal status
        message: Human-readable summary
        artifact: Best-known code or text
        transcript: Ordered, non-empty list of turns
        last_feedback: Aggregated unresolved reviewer feedback, if any
        explanation: Developer explanation of the artifact, if any
        stop_reason: What ended the session
        session_id: Identifier used in logs
    """
    status: SessionStatus
    message: str
    artifact: str
    transcript: List[Turn]
    last_feedback: Optional[str] = None
    explanation: Optional[str] = None
    stop_reason: Optional[StopReason] = None
    session_id: Optional[str] = None

    @property
    def last_turn(self) -> Turn:
        return self.transcript[-1]
