"""Agent abstraction: one async capability, ``invoke(input) -> output``."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from ..models.messages import (
    AgentReply,
    GeneratedCode,
    GenerationRequest,
    NegotiationPrompt,
    ReviewReport,
    ReviewRequest,
)

logger = logging.getLogger(__name__)


class Agent(ABC):
    """
    Base class for every agent the orchestrator talks to.

    Agents are stateless and may be shared between sessions. A failed call
    raises ``AgentInvocationError``; the orchestrator turns that into a
    value at the invocation boundary.

    Attributes:
        name: Agent name/identifier used in logs and error messages
    """

    def __init__(self, name: str):
        self.name = name
        logger.info(f"Initialized {self.__class__.__name__}: {name}")

    @abstractmethod
    async def invoke(self, payload: Any) -> Any:
        """Process one turn."""

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"

    def __repr__(self) -> str:
        return self.__str__()


class CodeGenerator(Agent):
    """Developer agent: feature request (+ feedback) in, code out."""

    @abstractmethod
    async def invoke(self, payload: GenerationRequest) -> GeneratedCode:
        ...


class CodeReviewer(Agent):
    """QA agent: code in, ordered list of fixes out."""

    @abstractmethod
    async def invoke(self, payload: ReviewRequest) -> ReviewReport:
        ...


class FreeformNegotiator(Agent):
    """Plain text in, plain text out."""

    @abstractmethod
    async def invoke(self, payload: NegotiationPrompt) -> AgentReply:
        ...
