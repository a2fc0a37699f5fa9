"""Termination policy and turn-selection strategies shared by both sessions."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Union

from ..models.messages import AgentReply, Fix, ReviewReport

logger = logging.getLogger(__name__)

CLARIFICATION_KEYWORD = "clarify"
FEEDBACK_SEPARATOR = "\n\n---\n\n"


def has_outstanding_issues(report: ReviewReport) -> bool:
    """True iff the reviewer raised at least one issue."""
    return bool(report.fixes)


def requests_clarification(reply: Union[AgentReply, str]) -> bool:
    """
    Decide whether a reply asks the human for clarification.

    An explicit ``needs_clarification`` flag on the reply wins. Without one,
    falls back to a case-insensitive search for "clarify" in the text, which
    also matches unrelated text that happens to contain the word.
    """
    if isinstance(reply, AgentReply):
        if reply.needs_clarification is not None:
            return reply.needs_clarification
        text = reply.text
    else:
        text = reply
    return CLARIFICATION_KEYWORD in (text or "").lower()


def format_fix(fix: Fix) -> str:
    return f"Issue Description: {fix.description}\nSuggested Patch:\n{fix.patch}"


def aggregate_feedback(fixes: Iterable[Fix]) -> str:
    """Join all issues of one review round, in the order the reviewer returned them."""
    return FEEDBACK_SEPARATOR.join(format_fix(fix) for fix in fixes)


@dataclass(frozen=True)
class RoleAssignment:
    """Which role speaks first (primary) and which responds (secondary)."""
    primary: str
    secondary: str

    def responder_for_round(self, round_number: int) -> str:
        """
        Role that answers in a 1-based relay round.

        Odd rounds go to the secondary role, even rounds back to the primary.
        """
        if round_number < 1:
            raise ValueError(f"round_number must be >= 1, got {round_number}")
        return self.secondary if round_number % 2 == 1 else self.primary


ROLE_ASSIGNMENTS: Dict[str, RoleAssignment] = {
    "developer": RoleAssignment(primary="developer", secondary="qa"),
    "qa": RoleAssignment(primary="qa", secondary="developer"),
}
