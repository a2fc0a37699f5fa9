"""Tests for response shaping and JSON extraction."""

from datetime import datetime, timezone

from codepilot.models.session import Result, SessionStatus, StopReason, Turn
from codepilot.utils.response_formatter import ResponseFormatter


def _turn(role, content, ms):
    return Turn(role=role, content=content, timestamp=datetime.fromtimestamp(ms / 1000, tz=timezone.utc))


class TestExtractJson:
    def test_markdown_block(self):
        text = 'Here you go:\n```json\n{"codeSnippet": "x = 1"}\n```'
        assert ResponseFormatter.extract_json_from_response(text) == {"codeSnippet": "x = 1"}

    def test_raw_json(self):
        assert ResponseFormatter.extract_json_from_response('{"fixes": []}') == {"fixes": []}

    def test_embedded_json(self):
        text = 'Sure. {"fixes": [{"description": "d", "patch": "p"}]} Hope that helps.'
        data = ResponseFormatter.extract_json_from_response(text)
        assert data["fixes"][0]["description"] == "d"

    def test_skips_unbalanced_prefix(self):
        text = 'Use {braces} carefully: {"codeSnippet": "ok"}'
        assert ResponseFormatter.extract_json_from_response(text) == {"codeSnippet": "ok"}

    def test_no_json(self):
        assert ResponseFormatter.extract_json_from_response("no json here") is None


class TestFormatResults:
    def test_collaboration_success(self):
        result = Result(
            status=SessionStatus.SUCCESS,
            message="done",
            artifact="code",
            transcript=[_turn("user", "req", 1000)],
            explanation="why",
            stop_reason=StopReason.NO_ISSUES,
        )
        assert ResponseFormatter.format_collaboration_result(result) == {
            "status": "success",
            "message": "done",
            "finalCodeSnippet": "code",
            "explanation": "why",
        }

    def test_collaboration_error_without_code_omits_optional_keys(self):
        result = Result(
            status=SessionStatus.ERROR,
            message="Error during Developer Agent phase: down",
            artifact="",
            transcript=[_turn("user", "req", 1000)],
        )
        assert ResponseFormatter.format_collaboration_result(result) == {
            "status": "error",
            "message": "Error during Developer Agent phase: down",
        }

    def test_collaboration_needs_clarification_includes_feedback(self):
        result = Result(
            status=SessionStatus.NEEDS_CLARIFICATION,
            message="unresolved",
            artifact="v2",
            transcript=[_turn("user", "req", 1000)],
            last_feedback="Issue Description: d\nSuggested Patch:\np",
        )
        payload = ResponseFormatter.format_collaboration_result(result)
        assert payload["status"] == "needs_clarification"
        assert payload["qaFeedbackOnFinalIteration"] == "Issue Description: d\nSuggested Patch:\np"

    def test_negotiation_chat_log(self):
        result = Result(
            status=SessionStatus.SUCCESS,
            message="done",
            artifact="b",
            transcript=[_turn("user", "go", 1000), _turn("developer", "a", 2000), _turn("qa", "b", 3000)],
        )
        assert ResponseFormatter.format_negotiation_result(result) == {
            "result": {
                "chatLog": [
                    {"from": "user", "content": "go", "timestamp": 1000},
                    {"from": "developer", "content": "a", "timestamp": 2000},
                    {"from": "qa", "content": "b", "timestamp": 3000},
                ]
            }
        }
