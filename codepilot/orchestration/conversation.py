"""Conversation history and per-call session state."""

import logging
import uuid
from typing import List, Dict, Any, Optional

from ..models.session import Result, SessionStatus, StopReason, Turn
from ..utils.errors import SessionClosedError

logger = logging.getLogger(__name__)


class ConversationHistory:
    """
    Append-only transcript of a single session.

    Attributes:
        turns: Turns in the order they were recorded
        session_id: Identifier used for logging
    """

    def __init__(self, session_id: Optional[str] = None):
        self.turns: List[Turn] = []
        self.session_id = session_id

    def add_turn(
        self,
        role: str,
        content: str,
        is_error: bool = False,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Turn:
        """
        Add a new turn to the conversation history.

        Args:
            role: Speaker (user, developer, qa, system)
            content: Message content
            is_error: Whether the turn records a failed invocation
            metadata: Optional metadata about the turn

        Returns:
            The created Turn
        """
        turn = Turn(role=role, content=content, is_error=is_error, metadata=metadata or {})
        self.turns.append(turn)

        logger.debug(
            f"Added turn {len(self.turns)} from {role}: "
            f"{content[:100] if content else 'empty'}..."
        )
        return turn

    def get_turns(self) -> List[Turn]:
        return self.turns.copy()

    def get_turn_count(self) -> int:
        return len(self.turns)

    def __len__(self) -> int:
        return len(self.turns)

    def __repr__(self) -> str:
        return f"ConversationHistory(session_id={self.session_id}, turns={len(self.turns)})"


class Session:
    """
    State for one bounded orchestration run.

    Created at the start of a call, mutated only by the owning loop, and
    dropped when the call returns. Once a terminal status is set the
    transcript is frozen.

    Attributes:
        session_id: Identifier used for logging
        max_rounds: Round budget
        round_index: Current round (0-based)
        history: Transcript
        current_payload: Artifact or prompt being passed forward
        accumulated_feedback: Role -> latest feedback text
        status: Current SessionStatus
    """

    def __init__(self, max_rounds: int, session_id: Optional[str] = None):
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.max_rounds = max_rounds
        self.round_index = 0
        self.history = ConversationHistory(session_id=self.session_id)
        self.current_payload = ""
        self.accumulated_feedback: Dict[str, str] = {}
        self.status = SessionStatus.RUNNING

    def append_turn(
        self,
        role: str,
        content: str,
        is_error: bool = False,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Turn:
        if self.status.is_terminal:
            raise SessionClosedError(
                f"Session {self.session_id} already terminated with status {self.status.value}"
            )
        return self.history.add_turn(role, content, is_error=is_error, metadata=metadata)

    def terminate(
        self,
        status: SessionStatus,
        message: str,
        stop_reason: StopReason,
        last_feedback: Optional[str] = None,
        explanation: Optional[str] = None,
    ) -> Result:
        """
        Set the terminal status and build the Result.

        Args:
            status: Terminal status (must not be RUNNING)
            message: Human-readable summary
            stop_reason: What ended the session
            last_feedback: Unresolved aggregated feedback, if any
            explanation: Explanation of the artifact, if any

        Returns:
            Result carrying ``current_payload`` as the artifact
        """
        if not status.is_terminal:
            raise ValueError("terminate() requires a terminal status")
        if self.status.is_terminal:
            raise SessionClosedError(f"Session {self.session_id} already terminated")
        if not self.history.turns:
            raise SessionClosedError(f"Session {self.session_id} has an empty transcript")

        self.status = status
        logger.info(
            f"Session {self.session_id} finished: status={status.value}, "
            f"reason={stop_reason.value}, turns={self.history.get_turn_count()}"
        )
        return Result(
            status=status,
            message=message,
            artifact=self.current_payload,
            transcript=self.history.get_turns(),
            last_feedback=last_feedback or None,
            explanation=explanation or None,
            stop_reason=stop_reason,
            session_id=self.session_id,
        )
