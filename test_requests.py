"""Tests for caller request validation."""

import pytest

from codepilot.models.request import AgentTurnRequest, CollaborationRequest, NegotiationRequest
from codepilot.utils.errors import InvalidRequestError


class TestCollaborationRequest:
    def test_defaults(self):
        request = CollaborationRequest.from_payload({"featureRequest": "Add search"})
        assert request.programming_language == "typescript"
        assert request.framework == "nextjs"
        assert request.existing_code_context is None

    def test_explicit_values(self):
        request = CollaborationRequest.from_payload({
            "featureRequest": "Add search",
            "programmingLanguage": "python",
            "framework": "fastapi",
            "existingCodeContext": "app = FastAPI()",
        })
        assert request.programming_language == "python"
        assert request.framework == "fastapi"
        assert request.existing_code_context == "app = FastAPI()"

    @pytest.mark.parametrize("payload", [{}, {"featureRequest": ""}, {"featureRequest": "  "}])
    def test_missing_feature_request(self, payload):
        with pytest.raises(InvalidRequestError) as exc_info:
            CollaborationRequest.from_payload(payload)
        assert "featureRequest" in str(exc_info.value)

    def test_non_object_body(self):
        with pytest.raises(InvalidRequestError):
            CollaborationRequest.from_payload(["featureRequest"])

    def test_non_string_field(self):
        with pytest.raises(InvalidRequestError):
            CollaborationRequest.from_payload({"featureRequest": 42})


class TestNegotiationRequest:
    def test_minimal(self):
        request = NegotiationRequest.from_payload({"agentType": "qa", "instruction": "check"})
        assert request.agent_type == "qa"
        assert request.build_context() is None

    def test_invalid_agent_type(self):
        with pytest.raises(InvalidRequestError):
            NegotiationRequest.from_payload({"agentType": "pm", "instruction": "check"})

    def test_missing_instruction(self):
        with pytest.raises(InvalidRequestError):
            NegotiationRequest.from_payload({"agentType": "developer"})

    def test_files_must_be_object(self):
        with pytest.raises(InvalidRequestError):
            NegotiationRequest.from_payload({
                "agentType": "developer", "instruction": "x", "files": ["a.ts"],
            })

    def test_chat_log_sender_validated(self):
        with pytest.raises(InvalidRequestError):
            NegotiationRequest.from_payload({
                "agentType": "developer",
                "instruction": "x",
                "chatLog": [{"from": "robot", "content": "hi"}],
            })

    def test_context_renders_files_and_chat(self):
        request = NegotiationRequest.from_payload({
            "agentType": "developer",
            "instruction": "Fix the bug",
            "files": {"src/b.ts": "export const b = 2;", "src/a.ts": "export const a = 1;"},
            "chatLog": [
                {"from": "user", "content": "It crashes on load", "timestamp": 1},
                {"from": "qa", "content": "Stack trace points at a.ts", "timestamp": 2},
            ],
        })

        assert request.build_context() == (
            "Project Files:\n"
            "--- src/a.ts ---\nexport const a = 1;\n\n"
            "--- src/b.ts ---\nexport const b = 2;"
            "\n\n"
            "Prior Conversation:\n"
            "[USER]: It crashes on load\n"
            "[QA]: Stack trace points at a.ts"
        )


class TestAgentTurnRequest:
    def test_prompt_required(self):
        with pytest.raises(InvalidRequestError):
            AgentTurnRequest.from_payload({"context": "x"})

    def test_context_optional(self):
        request = AgentTurnRequest.from_payload({"prompt": "hi"})
        assert request.context is None
