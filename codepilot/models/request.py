"""Caller request data models."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..utils.errors import InvalidRequestError

NEGOTIATION_ROLES = ("developer", "qa")
CHAT_ROLES = ("developer", "qa", "user", "system")


def _required_text(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidRequestError.missing_field(key)
    if not isinstance(value, str):
        raise InvalidRequestError.invalid_value(key, value, "a string")
    return value


def _optional_text(payload: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = payload.get(key)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise InvalidRequestError.invalid_value(key, value, "a string")
    return value


@dataclass
class CollaborationRequest:
    """
    Input for a collaborative code generation run.

    Attributes:
        feature_request: What the agents should build
        programming_language: Target language (default "typescript")
        framework: Target framework (default "nextjs")
        existing_code_context: Optional code the first developer turn starts from
    """
    feature_request: str
    programming_language: str = "typescript"
    framework: str = "nextjs"
    existing_code_context: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CollaborationRequest":
        if not isinstance(payload, dict):
            raise InvalidRequestError.invalid_value("body", type(payload).__name__, "a JSON object")
        return cls(
            feature_request=_required_text(payload, "featureRequest"),
            programming_language=_optional_text(payload, "programmingLanguage", "typescript"),
            framework=_optional_text(payload, "framework", "nextjs"),
            existing_code_context=_optional_text(payload, "existingCodeContext"),
        )


@dataclass
class ChatEntry:
    """A prior chat-log entry supplied by the caller."""
    sender: str
    content: str
    timestamp: Optional[int] = None


@dataclass
class NegotiationRequest:
    """
    Input for a developer/QA negotiation run.

    Attributes:
        agent_type: Role that speaks first ("developer" or "qa")
        instruction: The human's prompt
        files: Optional project files (path -> content) shared as context
        chat_log: Optional prior conversation shared as context
    """
    agent_type: str
    instruction: str
    files: Dict[str, str] = field(default_factory=dict)
    chat_log: List[ChatEntry] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "NegotiationRequest":
        if not isinstance(payload, dict):
            raise InvalidRequestError.invalid_value("body", type(payload).__name__, "a JSON object")

        agent_type = _required_text(payload, "agentType")
        if agent_type not in NEGOTIATION_ROLES:
            raise InvalidRequestError.invalid_value(
                "agentType", agent_type, " or ".join(repr(r) for r in NEGOTIATION_ROLES)
            )
        instruction = _required_text(payload, "instruction")

        files = payload.get("files") or {}
        if not isinstance(files, dict):
            raise InvalidRequestError.invalid_value("files", files, "an object of path -> content")
        files = {str(path): content if isinstance(content, str) else str(content)
                 for path, content in files.items()}

        raw_log = payload.get("chatLog") or []
        if not isinstance(raw_log, list):
            raise InvalidRequestError.invalid_value("chatLog", raw_log, "an array of messages")
        chat_log: List[ChatEntry] = []
        for entry in raw_log:
            if not isinstance(entry, dict) or "content" not in entry:
                raise InvalidRequestError.invalid_value("chatLog", entry, "{from, content, timestamp}")
            sender = entry.get("from", "user")
            if sender not in CHAT_ROLES:
                raise InvalidRequestError.invalid_value(
                    "chatLog.from", sender, ", ".join(CHAT_ROLES)
                )
            chat_log.append(ChatEntry(
                sender=sender,
                content=str(entry["content"]),
                timestamp=entry.get("timestamp"),
            ))

        return cls(agent_type=agent_type, instruction=instruction, files=files, chat_log=chat_log)

    def build_context(self) -> Optional[str]:
        """
        Render files and prior chat into the fixed context passed to every turn.

        Returns:
            Context text, or None when there is nothing to share
        """
        sections: List[str] = []
        if self.files:
            file_blocks = [f"--- {path} ---\n{content}" for path, content in sorted(self.files.items())]
            sections.append("Project Files:\n" + "\n\n".join(file_blocks))
        if self.chat_log:
            lines = [f"[{entry.sender.upper()}]: {entry.content}" for entry in self.chat_log]
            sections.append("Prior Conversation:\n" + "\n".join(lines))
        return "\n\n".join(sections) if sections else None


@dataclass
class AgentTurnRequest:
    """Input for a single agent turn: ``{prompt, context?}``."""
    prompt: str
    context: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "AgentTurnRequest":
        if not isinstance(payload, dict):
            raise InvalidRequestError.invalid_value("body", type(payload).__name__, "a JSON object")
        return cls(
            prompt=_required_text(payload, "prompt"),
            context=_optional_text(payload, "context"),
        )
