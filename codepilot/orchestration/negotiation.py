"""Two-party relay between the developer and QA agents."""

import logging
from typing import Dict, Optional

from ..agents.base import FreeformNegotiator
from ..models.messages import NegotiationPrompt
from ..models.session import Result, SessionStatus, StopReason
from ..utils.errors import InvalidRequestError
from ..utils.logging import set_context
from .conversation import Session
from .invocation import Deadline, invoke_agent
from .strategies import ROLE_ASSIGNMENTS, requests_clarification

logger = logging.getLogger(__name__)


class NegotiationSession:
    """
    Relays replies between two agents until one asks for clarification,
    a call fails, or the round budget runs out.

    The initiating role answers the user first; afterwards the other role
    answers on odd rounds and the initiator on even rounds, each time taking
    the previous reply as its prompt. The context stays fixed for the run.

    Attributes:
        agents: Role -> agent, for every role in ROLE_ASSIGNMENTS
        max_rounds: Relay rounds allowed after the first turn
        deadline_seconds: Optional wall-clock budget for the whole run
    """

    def __init__(
        self,
        agents: Dict[str, FreeformNegotiator],
        max_rounds: int = 2,
        deadline_seconds: Optional[float] = None,
    ):
        missing = [role for role in ROLE_ASSIGNMENTS if role not in agents]
        if missing:
            raise ValueError(f"Missing agents for roles: {', '.join(missing)}")
        if max_rounds < 0:
            raise ValueError(f"max_rounds must not be negative, got {max_rounds}")
        self.agents = dict(agents)
        self.max_rounds = max_rounds
        self.deadline_seconds = deadline_seconds

    async def run(
        self,
        initiating_role: str,
        user_prompt: str,
        context: Optional[str] = None,
    ) -> Result:
        """
        Execute the relay.

        Args:
            initiating_role: "developer" or "qa"; speaks first
            user_prompt: The human's instruction
            context: Fixed context passed with every prompt

        Returns:
            Result whose transcript is the whole exchange; the artifact is
            the last reply text

        Raises:
            InvalidRequestError: On an unknown role or empty prompt
        """
        assignment = ROLE_ASSIGNMENTS.get(initiating_role)
        if assignment is None:
            raise InvalidRequestError.invalid_value(
                "agentType", initiating_role, " or ".join(repr(r) for r in ROLE_ASSIGNMENTS)
            )
        if not user_prompt or not user_prompt.strip():
            raise InvalidRequestError.missing_field("instruction")

        session = Session(max_rounds=self.max_rounds)
        set_context(session_id=session.session_id, phase="start")
        deadline = Deadline(self.deadline_seconds)

        session.append_turn("user", user_prompt)
        prompt_text = user_prompt

        responder = assignment.primary
        for round_number in range(0, self.max_rounds + 1):
            if round_number > 0:
                responder = assignment.responder_for_round(round_number)
            session.round_index = round_number
            logger.info(f"Negotiation round {round_number} of {self.max_rounds}: {responder} responds")

            prompt = NegotiationPrompt(prompt=prompt_text, context=context)
            outcome = await invoke_agent(self.agents[responder], prompt, responder, deadline)
            if not outcome.ok:
                session.append_turn(responder, f"Error: {outcome.error.context.message}", is_error=True)
                return session.terminate(
                    SessionStatus.ERROR,
                    f"Error during {responder} agent turn: {outcome.error.context.message}",
                    StopReason.AGENT_FAILURE,
                )

            reply = outcome.output
            prompt_text = reply.text
            session.current_payload = reply.text
            session.append_turn(responder, reply.text, metadata={"round": round_number})

            if requests_clarification(reply):
                logger.info(f"{responder} requested clarification; stopping relay")
                return session.terminate(
                    SessionStatus.NEEDS_CLARIFICATION,
                    f"The {responder} agent requested clarification.",
                    StopReason.CLARIFICATION_REQUESTED,
                )

        return session.terminate(
            SessionStatus.SUCCESS,
            f"Negotiation completed after {self.max_rounds} round(s).",
            StopReason.ROUND_BUDGET_EXHAUSTED,
        )
