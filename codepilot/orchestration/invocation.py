"""Agent invocation boundary: one call, no retry, failures returned as values."""

import asyncio
import logging
from dataclasses import dataclass, fields, is_dataclass
from typing import Any, Optional

from ..agents.base import Agent
from ..utils.errors import AgentInvocationError
from ..utils.logging import set_context

logger = logging.getLogger(__name__)


class Deadline:
    """Session-wide time budget measured on the event loop clock."""

    def __init__(self, seconds: Optional[float]):
        self.seconds = seconds
        self._expires_at: Optional[float] = None
        if seconds is not None:
            self._expires_at = asyncio.get_running_loop().time() + seconds

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return self._expires_at - asyncio.get_running_loop().time()

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


@dataclass
class InvocationOutcome:
    """Either the agent output or the error that replaced it."""
    output: Any = None
    error: Optional[AgentInvocationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def payload_size(payload: Any) -> int:
    """Total characters across the text fields of an agent input."""
    if is_dataclass(payload):
        return sum(
            len(value) for value in (getattr(payload, f.name) for f in fields(payload))
            if isinstance(value, str)
        )
    return len(str(payload))


async def invoke_agent(
    agent: Agent,
    payload: Any,
    phase: str,
    deadline: Optional[Deadline] = None,
) -> InvocationOutcome:
    """
    Invoke an agent once and report the result as a value.

    Logging happens here; session state is never touched.

    Args:
        agent: Agent to call
        payload: Agent input
        phase: Label for logs (e.g. "developer", "qa")
        deadline: Optional session deadline bounding this call

    Returns:
        InvocationOutcome with either ``output`` or ``error`` set
    """
    set_context(phase=phase)
    logger.info(f"Invoking {agent.name} ({phase}), input_size={payload_size(payload)}")

    try:
        if deadline is None or deadline.seconds is None:
            output = await agent.invoke(payload)
        else:
            remaining = deadline.remaining()
            if deadline.expired():
                raise AgentInvocationError.deadline_exceeded(agent.name, deadline.seconds)
            try:
                output = await asyncio.wait_for(agent.invoke(payload), timeout=remaining)
            except asyncio.TimeoutError:
                raise AgentInvocationError.deadline_exceeded(agent.name, deadline.seconds)

    except AgentInvocationError as e:
        logger.warning(f"{phase} invocation failed: {e}")
        return InvocationOutcome(error=e)

    except Exception as e:
        logger.error(f"{phase} invocation raised unexpectedly: {e}", exc_info=True)
        return InvocationOutcome(error=AgentInvocationError.unexpected(agent.name, e))

    logger.info(f"{agent.name} ({phase}) returned {type(output).__name__}")
    logger.debug(f"{agent.name} output: {str(output)[:200]}...")
    return InvocationOutcome(output=output)
