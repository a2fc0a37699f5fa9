"""Error handling utilities for the agent orchestrator."""

from dataclasses import dataclass
from typing import Optional, Dict, Any
from enum import Enum


class ErrorType(Enum):
    """Enumeration of error types in the orchestration system."""

    # Agent invocation errors
    AGENT_HTTP_ERROR = "AGENT_HTTP_ERROR"
    AGENT_TRANSPORT_ERROR = "AGENT_TRANSPORT_ERROR"
    AGENT_MALFORMED_RESPONSE = "AGENT_MALFORMED_RESPONSE"
    AGENT_DEADLINE_EXCEEDED = "AGENT_DEADLINE_EXCEEDED"
    AGENT_UNEXPECTED_ERROR = "AGENT_UNEXPECTED_ERROR"

    # Bedrock API Errors
    BEDROCK_RATE_LIMIT = "BEDROCK_RATE_LIMIT"
    BEDROCK_TIMEOUT = "BEDROCK_TIMEOUT"
    BEDROCK_AUTH_ERROR = "BEDROCK_AUTH_ERROR"
    BEDROCK_MODEL_ERROR = "BEDROCK_MODEL_ERROR"
    BEDROCK_INVALID_REQUEST = "BEDROCK_INVALID_REQUEST"
    BEDROCK_SERVICE_ERROR = "BEDROCK_SERVICE_ERROR"

    # Caller input errors
    INVALID_REQUEST = "INVALID_REQUEST"

    # Configuration Errors
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # System Errors
    INITIALIZATION_FAILED = "INITIALIZATION_FAILED"


@dataclass
class ErrorContext:
    """
    What went wrong, where, and what the caller still has.

    Attributes:
        error_type: Category from ErrorType
        message: Text shown to the caller and written to logs
        recoverable: False when the session must stop
        fallback_action: What the orchestrator returned instead, if anything
        details: Structured extras (agent name, HTTP status, config key)
        original_exception: Underlying exception, kept for logging only
    """

    error_type: ErrorType
    message: str
    recoverable: bool
    fallback_action: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    original_exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe view used in error responses and structured logs."""
        data: Dict[str, Any] = {
            "error_type": self.error_type.value,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": dict(self.details or {}),
        }
        if self.fallback_action:
            data["fallback_action"] = self.fallback_action
        if self.original_exception is not None:
            data["cause"] = repr(self.original_exception)
        return data


class OrchestrationError(Exception):
    """
    Base exception for all orchestration errors.

    Wraps errors with additional context so the caller can display them
    to a human and decide how to degrade.

    Attributes:
        context: ErrorContext with detailed error information
    """

    def __init__(self, context: ErrorContext):
        self.context = context
        super().__init__(context.message)

    def __str__(self) -> str:
        base = f"{self.context.error_type.value}: {self.context.message}"
        if self.context.fallback_action:
            base += f" (Fallback: {self.context.fallback_action})"
        return base

    def to_dict(self) -> Dict[str, Any]:
        return self.context.to_dict()


class AgentInvocationError(OrchestrationError):
    """
    A remote agent call failed (network, non-2xx status, malformed response,
    or deadline). Always ends the session; never retried by the orchestrator.
    """

    @classmethod
    def http_status(
        cls,
        agent: str,
        status: int,
        body: Any = None
    ) -> "AgentInvocationError":
        """
        Create error for an agent endpoint answering with HTTP status >= 400.

        Args:
            agent: Agent name
            status: HTTP status code returned by the endpoint
            body: Parsed or raw response body

        Returns:
            AgentInvocationError instance
        """
        detail = ""
        if isinstance(body, dict):
            detail = body.get("error") or body.get("details") or body.get("content") or ""
            if not isinstance(detail, str):
                detail = str(detail)
        elif body:
            detail = str(body)[:500]

        message = f"Agent '{agent}' call failed with status {status}"
        if detail:
            message += f": {detail}"

        context = ErrorContext(
            error_type=ErrorType.AGENT_HTTP_ERROR,
            message=message,
            recoverable=False,
            details={"agent": agent, "status": status, "body": body}
        )
        return cls(context)

    @classmethod
    def transport_failure(
        cls,
        agent: str,
        error: Exception
    ) -> "AgentInvocationError":
        context = ErrorContext(
            error_type=ErrorType.AGENT_TRANSPORT_ERROR,
            message=f"Could not reach agent '{agent}': {str(error) or error.__class__.__name__}",
            recoverable=False,
            details={"agent": agent},
            original_exception=error
        )
        return cls(context)

    @classmethod
    def malformed_response(
        cls,
        agent: str,
        reason: str,
        raw: Optional[str] = None
    ) -> "AgentInvocationError":
        context = ErrorContext(
            error_type=ErrorType.AGENT_MALFORMED_RESPONSE,
            message=f"Agent '{agent}' returned a malformed response: {reason}",
            recoverable=False,
            details={"agent": agent, "raw": raw[:500] if raw else None}
        )
        return cls(context)

    @classmethod
    def deadline_exceeded(
        cls,
        agent: str,
        deadline_seconds: Optional[float] = None
    ) -> "AgentInvocationError":
        """
        Create error for a session deadline that expired during an agent call.

        Args:
            agent: Agent that was in flight when the deadline expired
            deadline_seconds: Configured session deadline

        Returns:
            AgentInvocationError instance
        """
        message = f"Deadline exceeded while waiting for agent '{agent}'"
        if deadline_seconds is not None:
            message += f" (session deadline {deadline_seconds:g}s)"
        context = ErrorContext(
            error_type=ErrorType.AGENT_DEADLINE_EXCEEDED,
            message=message,
            recoverable=False,
            fallback_action="Return best artifact and transcript so far",
            details={"agent": agent, "deadline_seconds": deadline_seconds}
        )
        return cls(context)

    @classmethod
    def unexpected(
        cls,
        agent: str,
        error: Exception
    ) -> "AgentInvocationError":
        context = ErrorContext(
            error_type=ErrorType.AGENT_UNEXPECTED_ERROR,
            message=f"Agent '{agent}' failed unexpectedly: {str(error) or error.__class__.__name__}",
            recoverable=False,
            details={"agent": agent},
            original_exception=error
        )
        return cls(context)


# Converse error codes -> taxonomy; anything unlisted is a service error.
_BEDROCK_ERROR_TYPES = {
    "ThrottlingException": ErrorType.BEDROCK_RATE_LIMIT,
    "TooManyRequestsException": ErrorType.BEDROCK_RATE_LIMIT,
    "RequestTimeout": ErrorType.BEDROCK_TIMEOUT,
    "RequestTimeoutException": ErrorType.BEDROCK_TIMEOUT,
    "ModelTimeoutException": ErrorType.BEDROCK_TIMEOUT,
    "UnauthorizedException": ErrorType.BEDROCK_AUTH_ERROR,
    "AccessDeniedException": ErrorType.BEDROCK_AUTH_ERROR,
    "ValidationException": ErrorType.BEDROCK_INVALID_REQUEST,
    "ModelNotReadyException": ErrorType.BEDROCK_MODEL_ERROR,
}


class BedrockAPIError(AgentInvocationError):
    """A Bedrock Converse call made on behalf of an agent failed."""

    @classmethod
    def from_client_error(
        cls,
        error: Exception,
        operation: str,
        model_id: Optional[str] = None
    ) -> "BedrockAPIError":
        """
        Translate a botocore ``ClientError`` into the orchestrator taxonomy.

        Args:
            error: The ClientError (or anything carrying a ``response`` dict)
            operation: Bedrock operation name, e.g. "converse"
            model_id: Model that was being called

        Returns:
            BedrockAPIError instance
        """
        error_info = getattr(error, "response", {}).get("Error", {})
        code = error_info.get("Code", "Unknown")
        reason = error_info.get("Message") or str(error)

        return cls(ErrorContext(
            error_type=_BEDROCK_ERROR_TYPES.get(code, ErrorType.BEDROCK_SERVICE_ERROR),
            message=f"Bedrock {operation} failed ({code}): {reason}",
            recoverable=False,
            details={"error_code": code, "operation": operation, "model_id": model_id},
            original_exception=error
        ))


class InvalidRequestError(OrchestrationError):
    """Malformed caller input, rejected before any agent is invoked."""

    @classmethod
    def missing_field(cls, field_name: str) -> "InvalidRequestError":
        context = ErrorContext(
            error_type=ErrorType.INVALID_REQUEST,
            message=f"Missing required field '{field_name}'",
            recoverable=False,
            details={"field": field_name}
        )
        return cls(context)

    @classmethod
    def invalid_value(
        cls,
        field_name: str,
        value: Any,
        expected: str
    ) -> "InvalidRequestError":
        context = ErrorContext(
            error_type=ErrorType.INVALID_REQUEST,
            message=f"Invalid value for '{field_name}': {value!r} (expected {expected})",
            recoverable=False,
            details={"field": field_name, "value": value}
        )
        return cls(context)


class ConfigurationError(OrchestrationError):
    """Exception for missing or invalid configuration."""

    @classmethod
    def missing_file(cls, config_path: str) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_MISSING,
            message=f"Configuration file not found at '{config_path}'",
            recoverable=False,
            details={"config_path": config_path}
        )
        return cls(context)

    @classmethod
    def invalid(cls, key: str, reason: str) -> "ConfigurationError":
        context = ErrorContext(
            error_type=ErrorType.CONFIG_INVALID,
            message=f"Invalid configuration for '{key}': {reason}",
            recoverable=False,
            details={"key": key}
        )
        return cls(context)


class SessionClosedError(RuntimeError):
    """Raised when a turn is appended to a session that already terminated."""
