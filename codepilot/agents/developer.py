"""Developer agent backed by AWS Bedrock."""

import logging
from typing import List

from .base import CodeGenerator
from ..models.messages import GeneratedCode, GenerationRequest
from ..utils.bedrock_client import BedrockClient
from ..utils.errors import AgentInvocationError
from ..utils.response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)

DEVELOPER_INSTRUCTIONS = """You are a code generation expert. Generate code snippets and file templates from high-level feature requests.
Follow the coding standards of the requested language and framework, integrate with any existing code,
generate secure code without secrets, and keep it clear and maintainable.
If QA feedback is provided, incorporate the necessary changes.

Respond with JSON only:
{"codeSnippet": "<the generated code>", "explanation": "<a brief explanation>"}"""


class BedrockCodeGenerator(CodeGenerator):
    """Generates or refines code with a single Converse call."""

    def __init__(
        self,
        bedrock: BedrockClient,
        name: str = "developer",
        instructions: str = DEVELOPER_INSTRUCTIONS,
    ):
        super().__init__(name)
        self.bedrock = bedrock
        self.instructions = instructions

    async def invoke(self, payload: GenerationRequest) -> GeneratedCode:
        response_text = await self.bedrock.converse_text(self.instructions, self._build_prompt(payload))

        data = ResponseFormatter.extract_json_from_response(response_text)
        if data is None:
            raise AgentInvocationError.malformed_response(self.name, "no JSON object found", response_text)
        code = data.get("codeSnippet")
        if not isinstance(code, str):
            raise AgentInvocationError.malformed_response(self.name, "missing 'codeSnippet'", response_text)

        explanation = data.get("explanation") or ""
        logger.debug(f"{self.name} generated {len(code)} characters of code")
        return GeneratedCode(code=code, explanation=str(explanation))

    @staticmethod
    def _build_prompt(payload: GenerationRequest) -> str:
        parts: List[str] = [
            f"Feature Request: {payload.feature_request}",
            f"Programming Language: {payload.programming_language}",
            f"Framework: {payload.framework or 'None'}",
            f"Existing Code Context: {payload.existing_code or 'None'}",
        ]
        if payload.feedback:
            parts.append(f"QA Feedback:\n{payload.feedback}")
        return "\n".join(parts)
