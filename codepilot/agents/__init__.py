"""Agents: the abstract capability and its concrete adapters."""

from .base import Agent, CodeGenerator, CodeReviewer, FreeformNegotiator
from .developer import BedrockCodeGenerator
from .negotiator import BedrockNegotiator, HttpNegotiator
from .reviewer import BedrockCodeReviewer

__all__ = [
    "Agent",
    "BedrockCodeGenerator",
    "BedrockCodeReviewer",
    "BedrockNegotiator",
    "CodeGenerator",
    "CodeReviewer",
    "FreeformNegotiator",
    "HttpNegotiator",
]
