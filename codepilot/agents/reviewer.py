"""QA reviewer agent backed by AWS Bedrock."""

import logging
from typing import List

from .base import CodeReviewer
from ..models.messages import Fix, ReviewReport, ReviewRequest
from ..utils.bedrock_client import BedrockClient
from ..utils.errors import AgentInvocationError
from ..utils.response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)

REVIEWER_INSTRUCTIONS = """You are a code analysis expert. Review the provided code and test results and suggest fixes.
Fixes must be non-destructive, stay focused on the actual issues, explain the problem clearly,
and present each change as a patch in standard diff format. Return an empty list when the code is fine.

Respond with JSON only:
{"fixes": [{"description": "<problem and solution>", "patch": "<diff>"}]}"""


class BedrockCodeReviewer(CodeReviewer):
    """Reviews code and returns fixes in the order the model listed them."""

    def __init__(
        self,
        bedrock: BedrockClient,
        name: str = "qa",
        instructions: str = REVIEWER_INSTRUCTIONS,
    ):
        super().__init__(name)
        self.bedrock = bedrock
        self.instructions = instructions

    async def invoke(self, payload: ReviewRequest) -> ReviewReport:
        prompt = f"Code:\n```\n{payload.code}\n```\n\nTest Results:\n```\n{payload.test_results}\n```"
        response_text = await self.bedrock.converse_text(self.instructions, prompt)

        data = ResponseFormatter.extract_json_from_response(response_text)
        if data is None:
            raise AgentInvocationError.malformed_response(self.name, "no JSON object found", response_text)
        raw_fixes = data.get("fixes")
        if not isinstance(raw_fixes, list):
            raise AgentInvocationError.malformed_response(self.name, "missing 'fixes' list", response_text)

        fixes: List[Fix] = []
        for item in raw_fixes:
            if not isinstance(item, dict) or "description" not in item:
                raise AgentInvocationError.malformed_response(
                    self.name, "each fix needs a 'description'", response_text
                )
            fixes.append(Fix(description=str(item["description"]), patch=str(item.get("patch") or "")))

        logger.info(f"{self.name} reported {len(fixes)} fix(es)")
        return ReviewReport(fixes=fixes)
