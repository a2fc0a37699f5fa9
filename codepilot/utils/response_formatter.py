"""Response formatting: JSON extraction from model output and wire payloads."""

import json
import logging
import re
from typing import Dict, Any, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.session import Result, Turn

logger = logging.getLogger(__name__)


class ResponseFormatter:
    """
    Utility class for the two JSON boundaries of the service.

    Provides methods for:
    - Extracting a JSON object from free-form model output
    - Shaping session Results into the HTTP response contracts
    """

    @staticmethod
    def extract_json_from_response(response_text: str) -> Optional[Dict[str, Any]]:
        """
        Extract a JSON object from various response formats.

        Tries, in order: markdown code blocks (```json ... ```), the whole
        response as JSON, and the first balanced JSON object in the text.

        Args:
            response_text: Raw response text that may contain JSON

        Returns:
            Parsed JSON dictionary, or None if no valid JSON found
        """
        if not response_text or not response_text.strip():
            logger.warning("Empty response text provided")
            return None

        text = response_text.strip()

        for extractor in (
            ResponseFormatter._extract_markdown_json,
            ResponseFormatter._extract_raw_json,
            ResponseFormatter._extract_embedded_json,
        ):
            data = extractor(text)
            if isinstance(data, dict):
                logger.debug(f"Extracted JSON via {extractor.__name__}")
                return data

        logger.warning(f"Failed to extract JSON from response: {text[:200]}...")
        return None

    @staticmethod
    def _extract_markdown_json(text: str) -> Optional[Any]:
        for pattern in (r'```json\s*\n(.*?)\n```', r'```\s*\n(.*?)\n```'):
            match = re.search(pattern, text, re.DOTALL)
            if match:
                try:
                    return json.loads(match.group(1).strip())
                except json.JSONDecodeError:
                    continue
        return None

    @staticmethod
    def _extract_raw_json(text: str) -> Optional[Any]:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _extract_embedded_json(text: str) -> Optional[Any]:
        """Find the first balanced ``{...}`` block that parses as JSON."""
        start_idx = text.find('{')
        while start_idx != -1:
            depth = 0
            in_string = False
            escape_next = False

            for i in range(start_idx, len(text)):
                char = text[i]
                if escape_next:
                    escape_next = False
                    continue
                if char == '\\':
                    escape_next = True
                    continue
                if char == '"':
                    in_string = not in_string
                    continue
                if in_string:
                    continue
                if char == '{':
                    depth += 1
                elif char == '}':
                    depth -= 1
                    if depth == 0:
                        try:
                            return json.loads(text[start_idx:i + 1])
                        except json.JSONDecodeError:
                            break

            start_idx = text.find('{', start_idx + 1)
        return None

    @staticmethod
    def turn_to_chat_entry(turn: "Turn") -> Dict[str, Any]:
        """Render a Turn as a chat-log entry: ``{from, content, timestamp}``."""
        return {
            "from": turn.role,
            "content": turn.content,
            "timestamp": turn.timestamp_ms,
        }

    @staticmethod
    def format_collaboration_result(result: "Result") -> Dict[str, Any]:
        """
        Shape a CollaborationSession Result into the collaboration response.

        Optional keys are omitted rather than sent as null.
        """
        payload: Dict[str, Any] = {
            "status": result.status.value,
            "message": result.message,
        }
        if result.artifact:
            payload["finalCodeSnippet"] = result.artifact
        if result.explanation:
            payload["explanation"] = result.explanation
        if result.last_feedback:
            payload["qaFeedbackOnFinalIteration"] = result.last_feedback
        return payload

    @staticmethod
    def format_negotiation_result(result: "Result") -> Dict[str, Any]:
        """Shape a NegotiationSession Result into ``{result: {chatLog: [...]}}``."""
        chat_log: List[Dict[str, Any]] = [
            ResponseFormatter.turn_to_chat_entry(turn) for turn in result.transcript
        ]
        return {"result": {"chatLog": chat_log}}
