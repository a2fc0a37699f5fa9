"""Plain-text negotiating agents: Bedrock-backed and remote HTTP endpoints."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from .base import FreeformNegotiator
from ..models.messages import AgentReply, NegotiationPrompt
from ..utils.bedrock_client import BedrockClient
from ..utils.errors import AgentInvocationError

logger = logging.getLogger(__name__)


def render_prompt(payload: NegotiationPrompt, context_label: str = "Existing Project Context") -> str:
    if payload.context:
        return f"{payload.prompt}\n\n{context_label}:\n{payload.context}"
    return payload.prompt


class BedrockNegotiator(FreeformNegotiator):
    """
    Answers a prompt in a fixed persona with one Converse call.

    Attributes:
        bedrock: BedrockClient for LLM calls
        instructions: System prompt defining the persona
    """

    def __init__(self, name: str, instructions: str, bedrock: BedrockClient):
        super().__init__(name)
        self.instructions = instructions
        self.bedrock = bedrock

    async def invoke(self, payload: NegotiationPrompt) -> AgentReply:
        text = await self.bedrock.converse_text(self.instructions, render_prompt(payload))
        if not text.strip():
            raise AgentInvocationError.malformed_response(self.name, "empty reply")
        logger.debug(f"{self.name} response: {text[:100]}...")
        return AgentReply(text=text)


class HttpNegotiator(FreeformNegotiator):
    """
    Relays a prompt to a remote agent endpoint.

    The endpoint accepts ``{prompt, context?}`` and answers ``{reply}``
    (``content`` is accepted too). Any HTTP status >= 400 is a failure,
    whatever the body says.

    Attributes:
        url: Endpoint URL
        timeout: Transport timeout in seconds
    """

    def __init__(
        self,
        name: str,
        url: str,
        timeout: float = 120.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(name)
        self.url = url
        self.timeout = timeout
        self._session = session

    async def invoke(self, payload: NegotiationPrompt) -> AgentReply:
        body: Dict[str, Any] = {"prompt": payload.prompt}
        if payload.context:
            body["context"] = payload.context

        try:
            if self._session is not None:
                return await self._post(self._session, body)
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                return await self._post(session, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Transport failure calling {self.name} at {self.url}: {e!r}")
            raise AgentInvocationError.transport_failure(self.name, e)

    async def _post(self, session: aiohttp.ClientSession, body: Dict[str, Any]) -> AgentReply:
        async with session.post(self.url, json=body) as resp:
            raw = await resp.text()
            status = resp.status

        try:
            data = json.loads(raw) if raw else None
        except json.JSONDecodeError:
            data = None

        if status >= 400:
            raise AgentInvocationError.http_status(self.name, status, data if data is not None else raw)
        if not isinstance(data, dict):
            raise AgentInvocationError.malformed_response(self.name, "response is not a JSON object", raw)

        reply = data.get("reply", data.get("content"))
        if not isinstance(reply, str):
            raise AgentInvocationError.malformed_response(self.name, "missing 'reply' text", raw)

        flag = data.get("needsClarification")
        return AgentReply(text=reply, needs_clarification=flag if isinstance(flag, bool) else None)
