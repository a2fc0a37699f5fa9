"""AWS Bedrock client wrapper used by the LLM-backed agents."""

import asyncio
import logging
import os
from typing import Dict, List, Optional, Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .errors import BedrockAPIError, ErrorType, ErrorContext

logger = logging.getLogger(__name__)

RETRYABLE_ERROR_CODES = frozenset({
    "ThrottlingException",
    "TooManyRequestsException",
    "ServiceUnavailableException",
    "InternalServerException",
    "RequestTimeout",
    "RequestTimeoutException",
})


class BedrockClient:
    """
    Wrapper for the AWS Bedrock Runtime Converse API.

    The boto3 call is blocking, so it runs in a worker thread. When the
    session deadline cancels the await, the thread is abandoned rather than
    aborted; the botocore read_timeout is what finally ends it.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        model_id: str = "amazon.nova-pro-v1:0",
        timeout: int = 120,
        max_retries: int = 1,
        runtime: Any = None,
    ):
        """
        Initialize Bedrock client.

        Args:
            region: AWS region for Bedrock service
            model_id: Model ID used for Converse calls
            timeout: Connect/read timeout in seconds
            max_retries: Attempts per call for throttling/availability errors
            runtime: Optional pre-built bedrock-runtime client
        """
        self.region = region
        self.model_id = model_id
        self.max_retries = max(1, max_retries)

        if runtime is not None:
            self.runtime = runtime
        else:
            config_kwargs: Dict[str, Any] = {
                "region_name": region,
                "connect_timeout": timeout,
                "read_timeout": timeout,
                "retries": {"max_attempts": 0},  # retries handled here
            }
            # Recent botocore honours AWS_BEARER_TOKEN_BEDROCK (Bedrock API keys).
            if os.getenv("AWS_BEARER_TOKEN_BEDROCK"):
                config_kwargs["signature_version"] = "bearer"
                logger.info("BedrockClient configured to use Amazon Bedrock API key authentication")
            else:
                logger.info("BedrockClient configured to use AWS IAM credentials (SigV4)")
            self.runtime = boto3.client("bedrock-runtime", config=Config(**config_kwargs))

        logger.info(
            f"Initialized BedrockClient: region={region}, "
            f"model={model_id}, max_retries={self.max_retries}"
        )

    async def converse(
        self,
        messages: List[Dict[str, Any]],
        system_prompts: Optional[List[Dict[str, Any]]] = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> Dict[str, Any]:
        """
        Invoke the configured model via the Converse API.

        Args:
            messages: List of message dicts with 'role' and 'content'
            system_prompts: Optional system prompts
            temperature: Sampling temperature (0.0 = deterministic)
            max_tokens: Maximum tokens to generate

        Returns:
            Dict containing 'text', 'content', 'stop_reason' and 'usage'

        Raises:
            BedrockAPIError: If the call fails
        """
        params: Dict[str, Any] = {
            "modelId": self.model_id,
            "messages": messages,
            "inferenceConfig": {
                "temperature": temperature,
                "maxTokens": max_tokens
            }
        }
        if system_prompts:
            params["system"] = system_prompts

        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Invoking {self.model_id} (attempt {attempt + 1}/{self.max_retries})")
                response = await asyncio.to_thread(self.runtime.converse, **params)
                logger.info(
                    f"Converse call successful: "
                    f"stop_reason={response.get('stopReason')}, "
                    f"usage={response.get('usage')}"
                )
                return self._parse_converse_response(response)

            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")
                error_message = e.response.get("Error", {}).get("Message", str(e))
                logger.warning(
                    f"Bedrock API error (attempt {attempt + 1}/{self.max_retries}): "
                    f"code={error_code}, message={error_message}"
                )

                if error_code in RETRYABLE_ERROR_CODES and attempt < self.max_retries - 1:
                    wait_time = 2 ** attempt
                    logger.info(f"Retrying in {wait_time} seconds...")
                    await asyncio.sleep(wait_time)
                    continue

                raise BedrockAPIError.from_client_error(
                    error=e,
                    operation="converse",
                    model_id=self.model_id,
                )

            except Exception as e:
                logger.error(f"Unexpected error invoking {self.model_id}: {str(e)}")
                raise BedrockAPIError(ErrorContext(
                    error_type=ErrorType.BEDROCK_SERVICE_ERROR,
                    message=f"Unexpected error invoking {self.model_id}: {str(e)}",
                    recoverable=False,
                    details={"operation": "converse"},
                    original_exception=e
                ))

        raise BedrockAPIError(ErrorContext(
            error_type=ErrorType.BEDROCK_SERVICE_ERROR,
            message=f"Failed to invoke {self.model_id} after {self.max_retries} attempts",
            recoverable=False,
            details={"operation": "converse"}
        ))

    async def converse_text(
        self,
        instructions: str,
        user_message: str,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> str:
        """Single-turn convenience wrapper returning only the reply text."""
        result = await self.converse(
            messages=[{"role": "user", "content": [{"text": user_message}]}],
            system_prompts=[{"text": instructions}] if instructions else None,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return result.get("text", "")

    def _parse_converse_response(self, response: Dict[str, Any]) -> Dict[str, Any]:
        output = response.get("output", {})
        message = output.get("message", {})

        content = message.get("content", []) or []
        text_parts = [block["text"] for block in content if isinstance(block, dict) and "text" in block]

        return {
            "content": content,
            "role": message.get("role", "assistant"),
            "text": "\n".join(text_parts),
            "stop_reason": response.get("stopReason", "unknown"),
            "usage": response.get("usage", {}),
        }
