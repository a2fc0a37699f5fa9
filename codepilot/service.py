"""
Service entry points for the orchestrator.

Builds the configured agents lazily on first use and exposes one coroutine
per HTTP operation. Each call creates its own session; nothing mutable is
shared between requests except the stateless agents.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .agents.base import CodeGenerator, CodeReviewer, FreeformNegotiator
from .agents.developer import BedrockCodeGenerator
from .agents.negotiator import BedrockNegotiator, HttpNegotiator
from .agents.reviewer import BedrockCodeReviewer
from .models.messages import NegotiationPrompt
from .models.request import AgentTurnRequest, CollaborationRequest, NegotiationRequest, NEGOTIATION_ROLES
from .orchestration.collaboration import CollaborationSession
from .orchestration.invocation import invoke_agent
from .orchestration.negotiation import NegotiationSession
from .utils.bedrock_client import BedrockClient
from .utils.config import Config
from .utils.errors import ConfigurationError, ErrorContext, ErrorType, OrchestrationError
from .utils.logging import setup_logging, with_context
from .utils.response_formatter import ResponseFormatter

logger = logging.getLogger(__name__)


@dataclass
class AgentRegistry:
    """
    Agents available to sessions.

    Attributes:
        developer: Code generator used by collaboration sessions
        reviewer: Code reviewer used by collaboration sessions
        persona_agents: Role -> persona agent answering single agent turns
        relay_agents: Role -> agent used by negotiation sessions
    """
    developer: CodeGenerator
    reviewer: CodeReviewer
    persona_agents: Dict[str, FreeformNegotiator]
    relay_agents: Dict[str, FreeformNegotiator]


# Initialised on first use, or injected with configure()
_config: Optional[Config] = None
_registry: Optional[AgentRegistry] = None


def build_registry(config: Config, bedrock: Optional[BedrockClient] = None) -> AgentRegistry:
    """
    Build the agents described by the configuration.

    With the "http" backend, negotiation turns are relayed to the developer
    and QA endpoints; otherwise they go straight to Bedrock.
    """
    bedrock = bedrock or BedrockClient(
        region=config.aws_region,
        model_id=config.bedrock.model_id,
        timeout=config.bedrock.timeout,
        max_retries=config.bedrock.max_retries,
    )

    personas: Dict[str, FreeformNegotiator] = {
        "developer": BedrockNegotiator(config.developer.name, config.developer.instructions, bedrock),
        "qa": BedrockNegotiator(config.qa.name, config.qa.instructions, bedrock),
    }

    if config.agent_backend == "http":
        relay: Dict[str, FreeformNegotiator] = {
            "developer": HttpNegotiator(
                config.developer.name, config.endpoints.developer_url, config.endpoints.timeout
            ),
            "qa": HttpNegotiator(config.qa.name, config.endpoints.qa_url, config.endpoints.timeout),
        }
    else:
        relay = personas

    return AgentRegistry(
        developer=BedrockCodeGenerator(bedrock, name=config.developer.name),
        reviewer=BedrockCodeReviewer(bedrock, name=config.qa.name),
        persona_agents=personas,
        relay_agents=relay,
    )


def configure(config: Config, registry: Optional[AgentRegistry] = None) -> None:
    """Install a configuration and (optionally) pre-built agents."""
    global _config, _registry
    _config = config
    _registry = registry or build_registry(config)


def reset() -> None:
    global _config, _registry
    _config = None
    _registry = None


def _initialize_system() -> Tuple[Config, AgentRegistry]:
    """
    Load configuration, set up logging and build agents on first use.

    Raises:
        OrchestrationError: If initialisation fails
    """
    global _config, _registry

    if _config is not None and _registry is not None:
        return _config, _registry

    try:
        logger.info("Initializing orchestrator")
        config = _config or Config.load()
        setup_logging(config.logging.level, config.logging.format, config.logging.file)
        logger.info(
            f"Configuration loaded: backend={config.agent_backend}, "
            f"max_iterations={config.orchestration.max_iterations}, "
            f"max_negotiation_rounds={config.orchestration.max_negotiation_rounds}"
        )
        _registry = _registry or build_registry(config)
        _config = config
        logger.info("Orchestrator initialization complete")
        return _config, _registry

    except ConfigurationError:
        raise

    except Exception as e:
        logger.error(f"System initialization failed: {str(e)}", exc_info=True)
        raise OrchestrationError(
            ErrorContext(
                error_type=ErrorType.INITIALIZATION_FAILED,
                message=f"Failed to initialize orchestrator: {str(e)}",
                recoverable=False,
                original_exception=e
            )
        )


@with_context(operation="collaborate")
async def run_collaboration(payload: Any) -> Dict[str, Any]:
    """
    Run a collaborative code generation session.

    Args:
        payload: ``{featureRequest, existingCodeContext?, programmingLanguage?, framework?}``

    Returns:
        ``{status, message, finalCodeSnippet?, explanation?, qaFeedbackOnFinalIteration?}``

    Raises:
        InvalidRequestError: If the payload is malformed (no agent is called)
    """
    request = CollaborationRequest.from_payload(payload)
    config, registry = _initialize_system()

    session = CollaborationSession(
        developer=registry.developer,
        reviewer=registry.reviewer,
        max_iterations=config.orchestration.max_iterations,
        deadline_seconds=config.orchestration.session_deadline_seconds,
    )
    result = await session.run(
        feature_request=request.feature_request,
        language=request.programming_language,
        framework=request.framework,
        initial_code=request.existing_code_context,
    )
    return ResponseFormatter.format_collaboration_result(result)


@with_context(operation="negotiate")
async def run_negotiation(payload: Any) -> Dict[str, Any]:
    """
    Run a developer/QA negotiation.

    Args:
        payload: ``{agentType, instruction, files?, chatLog?}``

    Returns:
        ``{result: {chatLog: [{from, content, timestamp}]}}``

    Raises:
        InvalidRequestError: If the payload is malformed (no agent is called)
    """
    request = NegotiationRequest.from_payload(payload)
    config, registry = _initialize_system()

    session = NegotiationSession(
        agents=registry.relay_agents,
        max_rounds=config.orchestration.max_negotiation_rounds,
        deadline_seconds=config.orchestration.session_deadline_seconds,
    )
    result = await session.run(
        initiating_role=request.agent_type,
        user_prompt=request.instruction,
        context=request.build_context(),
    )
    logger.info(
        f"Negotiation {result.session_id} finished: status={result.status.value}, "
        f"turns={len(result.transcript)}, files={len(request.files)}"
    )
    return ResponseFormatter.format_negotiation_result(result)


@with_context(operation="agent-turn")
async def ask_agent(role: str, payload: Any) -> Tuple[int, Dict[str, Any]]:
    """
    Answer a single ``{prompt, context?}`` turn as the given persona.

    Returns:
        (HTTP status, body). Success bodies carry ``reply`` and ``content``;
        failures carry ``error`` and ``details`` with a 502/504 status.
    """
    if role not in NEGOTIATION_ROLES:
        raise ValueError(f"Unknown agent role: {role}")

    request = AgentTurnRequest.from_payload(payload)
    config, registry = _initialize_system()

    outcome = await invoke_agent(
        registry.persona_agents[role],
        NegotiationPrompt(prompt=request.prompt, context=request.context),
        phase=role,
    )
    timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)

    if not outcome.ok:
        error = outcome.error
        status = 504 if error.context.error_type is ErrorType.AGENT_DEADLINE_EXCEEDED else 502
        return status, {
            "from": role,
            "content": f"{role} agent call failed: {error.context.message}",
            "error": error.context.message,
            "details": error.to_dict(),
            "timestamp": timestamp,
        }

    reply = outcome.output
    body: Dict[str, Any] = {
        "from": role,
        "content": reply.text,
        "reply": reply.text,
        "timestamp": timestamp,
    }
    if reply.needs_clarification is not None:
        body["needsClarification"] = reply.needs_clarification
    return 200, body
