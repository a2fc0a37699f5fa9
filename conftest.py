"""Pytest configuration and scripted agents."""

import asyncio
from typing import Any, List

import pytest

from codepilot import service
from codepilot.agents.base import CodeGenerator, CodeReviewer, FreeformNegotiator
from codepilot.models.messages import (
    AgentReply,
    Fix,
    GeneratedCode,
    GenerationRequest,
    NegotiationPrompt,
    ReviewReport,
    ReviewRequest,
)
from codepilot.utils.errors import AgentInvocationError
from codepilot.utils.logging import clear_context


class _Scripted:
    """Replays queued outputs; an Exception in the script is raised instead."""

    def _next(self, payload: Any) -> Any:
        self.calls.append(payload)
        if not self.script:
            raise AssertionError(f"{self.name} called more times than scripted")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


class ScriptedGenerator(_Scripted, CodeGenerator):
    def __init__(self, script: List[Any], name: str = "developer"):
        super().__init__(name)
        self.script = list(script)
        self.calls: List[GenerationRequest] = []

    async def invoke(self, payload: GenerationRequest) -> GeneratedCode:
        return self._next(payload)


class ScriptedReviewer(_Scripted, CodeReviewer):
    def __init__(self, script: List[Any], name: str = "qa"):
        super().__init__(name)
        self.script = list(script)
        self.calls: List[ReviewRequest] = []

    async def invoke(self, payload: ReviewRequest) -> ReviewReport:
        return self._next(payload)


class ScriptedNegotiator(_Scripted, FreeformNegotiator):
    def __init__(self, script: List[Any], name: str):
        super().__init__(name)
        self.script = list(script)
        self.calls: List[NegotiationPrompt] = []

    async def invoke(self, payload: NegotiationPrompt) -> AgentReply:
        return self._next(payload)


class SlowNegotiator(FreeformNegotiator):
    """Sleeps longer than any deadline used in tests."""

    def __init__(self, name: str, delay: float = 5.0):
        super().__init__(name)
        self.delay = delay

    async def invoke(self, payload: NegotiationPrompt) -> AgentReply:
        await asyncio.sleep(self.delay)
        return AgentReply(text="too late")


def code(text: str, explanation: str = "") -> GeneratedCode:
    return GeneratedCode(code=text, explanation=explanation)


def report(*pairs) -> ReviewReport:
    return ReviewReport(fixes=[Fix(description=d, patch=p) for d, p in pairs])


def reply(text: str, needs_clarification=None) -> AgentReply:
    return AgentReply(text=text, needs_clarification=needs_clarification)


def transport_error(agent: str) -> AgentInvocationError:
    return AgentInvocationError.transport_failure(agent, ConnectionError("connection refused"))


@pytest.fixture(autouse=True)
def _reset_state():
    """Each test starts without cached service state or logging context."""
    service.reset()
    clear_context()
    yield
    service.reset()
    clear_context()
