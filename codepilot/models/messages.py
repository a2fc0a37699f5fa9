"""Inputs and outputs exchanged with agents."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class GenerationRequest:
    """
    Input for a code-generating (developer) agent.

    Attributes:
        feature_request: High-level description of the feature to implement
        programming_language: Target language
        framework: Optional framework or library
        existing_code: Code to refine, or context to integrate with
        feedback: Aggregated reviewer feedback from the previous round
    """
    feature_request: str
    programming_language: str
    framework: Optional[str] = None
    existing_code: Optional[str] = None
    feedback: str = ""


@dataclass
class GeneratedCode:
    """Developer agent output."""
    code: str
    explanation: str = ""


@dataclass
class ReviewRequest:
    """Input for a reviewing (QA) agent."""
    code: str
    test_results: str


@dataclass
class Fix:
    """
    A single issue raised by the reviewer.

    Attributes:
        description: Problem and proposed solution
        patch: Suggested change, in diff format
    """
    description: str
    patch: str


@dataclass
class ReviewReport:
    """Reviewer output; fixes keep the order the reviewer returned them in."""
    fixes: List[Fix] = field(default_factory=list)


@dataclass
class NegotiationPrompt:
    """Plain-text input for a negotiating agent."""
    prompt: str
    context: Optional[str] = None


@dataclass
class AgentReply:
    """
    Plain-text agent output.

    Attributes:
        text: Reply content
        needs_clarification: Explicit clarification signal, when the agent
            provides one; None means "not stated"
    """
    text: str
    needs_clarification: Optional[bool] = None
