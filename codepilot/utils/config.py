"""Configuration management for the agent orchestrator."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

AGENT_BACKENDS = ("bedrock", "http")


@dataclass
class BedrockConfig:
    """AWS Bedrock configuration."""
    model_id: str
    timeout: int
    max_retries: int


@dataclass
class OrchestrationConfig:
    """Round budgets and deadline for the orchestration loops."""
    max_iterations: int = 2
    max_negotiation_rounds: int = 2
    session_deadline_seconds: Optional[float] = None


@dataclass
class AgentEndpointsConfig:
    """HTTP endpoints used when agents are reached over the network."""
    developer_url: str
    qa_url: str
    timeout: float


@dataclass
class AgentConfig:
    """Agent configuration."""
    name: str
    instructions: str


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    format: str
    file: Optional[str]


@dataclass
class Config:
    """Main configuration class."""
    aws_region: str
    bedrock: BedrockConfig
    orchestration: OrchestrationConfig
    agent_backend: str
    endpoints: AgentEndpointsConfig
    developer: AgentConfig
    qa: AgentConfig
    logging: LoggingConfig

    @classmethod
    def load(cls, config_path: str = "config.yaml") -> "Config":
        """
        Load configuration from file and environment variables.

        Environment variables override config file values:
        - AWS_REGION
        - BEDROCK_MODEL_ID
        - MAX_ITERATIONS
        - MAX_NEGOTIATION_ROUNDS
        - SESSION_DEADLINE_SECONDS
        - AGENT_BACKEND
        - DEVELOPER_AGENT_URL
        - QA_AGENT_URL
        - LOG_LEVEL

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Config instance with loaded settings

        Raises:
            ConfigurationError: If the file is missing or a value is invalid
        """
        load_dotenv()

        if not os.path.exists(config_path):
            raise ConfigurationError.missing_file(config_path)

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        try:
            aws_data = config_data["aws"]
            orchestration_data = config_data.get("orchestration", {}) or {}
            agents_data = config_data["agents"]
            logging_data = config_data.get("logging", {}) or {}
        except KeyError as e:
            raise ConfigurationError.invalid(str(e.args[0]), "section is required")

        aws_region = os.getenv("AWS_REGION", aws_data["region"])

        bedrock_data = aws_data.get("bedrock", {}) or {}
        bedrock_config = BedrockConfig(
            model_id=os.getenv("BEDROCK_MODEL_ID", bedrock_data.get("model_id", "amazon.nova-pro-v1:0")),
            timeout=int(bedrock_data.get("timeout", 120)),
            max_retries=int(bedrock_data.get("max_retries", 1))
        )

        deadline = os.getenv(
            "SESSION_DEADLINE_SECONDS",
            orchestration_data.get("session_deadline_seconds")
        )
        orchestration_config = OrchestrationConfig(
            max_iterations=_int_at_least(
                "orchestration.max_iterations",
                os.getenv("MAX_ITERATIONS", orchestration_data.get("max_iterations", 2)),
                minimum=1
            ),
            max_negotiation_rounds=_int_at_least(
                "orchestration.max_negotiation_rounds",
                os.getenv(
                    "MAX_NEGOTIATION_ROUNDS",
                    orchestration_data.get("max_negotiation_rounds", 2)
                ),
                minimum=0
            ),
            session_deadline_seconds=_optional_positive_float(
                "orchestration.session_deadline_seconds", deadline
            ),
        )

        agent_backend = os.getenv("AGENT_BACKEND", agents_data.get("backend", "bedrock"))
        if agent_backend not in AGENT_BACKENDS:
            raise ConfigurationError.invalid(
                "agents.backend", f"expected one of {', '.join(AGENT_BACKENDS)}, got {agent_backend!r}"
            )

        endpoints_data = agents_data.get("endpoints", {}) or {}
        endpoints_config = AgentEndpointsConfig(
            developer_url=os.getenv("DEVELOPER_AGENT_URL", endpoints_data.get("developer_url", "")),
            qa_url=os.getenv("QA_AGENT_URL", endpoints_data.get("qa_url", "")),
            timeout=float(endpoints_data.get("timeout", 120))
        )
        if agent_backend == "http" and not (endpoints_config.developer_url and endpoints_config.qa_url):
            raise ConfigurationError.invalid(
                "agents.endpoints", "developer_url and qa_url are required for the http backend"
            )

        developer_config = _agent_config(agents_data, "developer")
        qa_config = _agent_config(agents_data, "qa")

        logging_config = LoggingConfig(
            level=os.getenv("LOG_LEVEL", logging_data.get("level", "INFO")),
            format=logging_data.get("format") or (
                "%(asctime)s - %(name)s - %(levelname)s - "
                "[session=%(session_id)s phase=%(phase)s] %(message)s"
            ),
            file=logging_data.get("file")
        )

        return cls(
            aws_region=aws_region,
            bedrock=bedrock_config,
            orchestration=orchestration_config,
            agent_backend=agent_backend,
            endpoints=endpoints_config,
            developer=developer_config,
            qa=qa_config,
            logging=logging_config,
        )


def _agent_config(agents_data: Dict[str, Any], role: str) -> AgentConfig:
    data = agents_data.get(role)
    if not data or not data.get("name"):
        raise ConfigurationError.invalid(f"agents.{role}", "name is required")
    return AgentConfig(name=data["name"], instructions=(data.get("instructions") or "").strip())


def _int_at_least(key: str, value: Any, minimum: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError.invalid(key, f"expected an integer, got {value!r}")
    if number < minimum:
        raise ConfigurationError.invalid(key, f"must be at least {minimum}, got {number}")
    return number


def _optional_positive_float(key: str, value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError.invalid(key, f"expected a number, got {value!r}")
    if number <= 0:
        raise ConfigurationError.invalid(key, f"must be positive, got {number}")
    return number
