"""Tests for the developer/QA collaboration loop."""

import pytest

from conftest import ScriptedGenerator, ScriptedReviewer, code, report, transport_error
from codepilot.models.session import SessionStatus, StopReason
from codepilot.orchestration.collaboration import CollaborationSession
from codepilot.utils.errors import ErrorType, InvalidRequestError


def _session(dev_script, qa_script, max_iterations=2):
    developer = ScriptedGenerator(dev_script)
    reviewer = ScriptedReviewer(qa_script)
    session = CollaborationSession(developer, reviewer, max_iterations=max_iterations)
    return session, developer, reviewer


class TestCollaborationSuccess:
    @pytest.mark.asyncio
    async def test_success_on_first_round(self):
        session, dev, qa = _session([code("v1", "first cut")], [report()])

        result = await session.run("Add a login form")

        assert result.status is SessionStatus.SUCCESS
        assert result.stop_reason is StopReason.NO_ISSUES
        assert result.message == "Code generated and reviewed successfully by AI agents."
        assert result.artifact == "v1"
        assert result.explanation == "first cut"
        assert result.last_feedback is None
        assert len(dev.calls) == 1
        assert len(qa.calls) == 1

    @pytest.mark.asyncio
    async def test_issue_then_clean_review(self):
        session, dev, qa = _session(
            [code("v1"), code("v2")],
            [report(("missing null check", "if (!x) return;")), report()],
        )

        result = await session.run("Add a login form")

        assert result.status is SessionStatus.SUCCESS
        assert result.artifact == "v2"
        assert len(dev.calls) == 2
        assert len(qa.calls) == 2

    @pytest.mark.asyncio
    async def test_feedback_and_code_carried_forward(self):
        session, dev, _ = _session(
            [code("v1"), code("v2")],
            [report(("d1", "p1")), report()],
        )

        await session.run("Add a login form", initial_code="legacy")

        first, second = dev.calls
        assert first.existing_code == "legacy"
        assert first.feedback == ""
        assert second.existing_code == "v1"
        assert second.feedback == "Issue Description: d1\nSuggested Patch:\np1"

    @pytest.mark.asyncio
    async def test_reviewer_receives_latest_code(self):
        session, _, qa = _session([code("v1"), code("v2")], [report(("d", "p")), report()])

        await session.run("feature")

        assert [call.code for call in qa.calls] == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_defaults_passed_to_developer(self):
        session, dev, _ = _session([code("v1")], [report()])

        await session.run("feature")

        assert dev.calls[0].programming_language == "typescript"
        assert dev.calls[0].framework == "nextjs"


class TestCollaborationBudget:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_iterations", [1, 2, 3])
    async def test_unresolved_issues_exhaust_budget(self, max_iterations):
        dev_script = [code(f"v{i}") for i in range(1, max_iterations + 1)]
        qa_script = [report((f"d{i}", f"p{i}"), (f"e{i}", f"q{i}")) for i in range(1, max_iterations + 1)]
        session, dev, qa = _session(dev_script, qa_script, max_iterations=max_iterations)

        result = await session.run("feature")

        n = max_iterations
        assert result.status is SessionStatus.NEEDS_CLARIFICATION
        assert result.stop_reason is StopReason.ROUND_BUDGET_EXHAUSTED
        assert len(dev.calls) == n
        assert len(qa.calls) == n
        assert result.artifact == f"v{n}"
        assert result.last_feedback == (
            f"Issue Description: d{n}\nSuggested Patch:\np{n}"
            "\n\n---\n\n"
            f"Issue Description: e{n}\nSuggested Patch:\nq{n}"
        )

    def test_rejects_zero_iterations(self):
        with pytest.raises(ValueError):
            CollaborationSession(ScriptedGenerator([]), ScriptedReviewer([]), max_iterations=0)


class TestCollaborationFailures:
    @pytest.mark.asyncio
    async def test_developer_fails_first_round(self):
        session, dev, qa = _session([transport_error("developer")], [])

        result = await session.run("feature")

        assert result.status is SessionStatus.ERROR
        assert result.stop_reason is StopReason.AGENT_FAILURE
        assert result.message.startswith("Error during Developer Agent phase:")
        assert result.artifact == ""
        assert len(qa.calls) == 0

    @pytest.mark.asyncio
    async def test_developer_fails_second_round_keeps_previous_code(self):
        session, dev, qa = _session(
            [code("v1"), transport_error("developer")],
            [report(("d", "p"))],
        )

        result = await session.run("feature")

        assert result.status is SessionStatus.ERROR
        assert result.artifact == "v1"
        assert len(dev.calls) == 2
        assert len(qa.calls) == 1

    @pytest.mark.asyncio
    async def test_reviewer_failure_keeps_current_code(self):
        session, _, _ = _session([code("v1")], [transport_error("qa")])

        result = await session.run("feature")

        assert result.status is SessionStatus.ERROR
        assert result.message.startswith("Error during QA Agent phase:")
        assert result.artifact == "v1"

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_error_result(self):
        session, _, _ = _session([RuntimeError("boom")], [])

        result = await session.run("feature")

        assert result.status is SessionStatus.ERROR
        assert "boom" in result.message

    @pytest.mark.asyncio
    async def test_error_turn_recorded(self):
        session, _, _ = _session([code("v1")], [transport_error("qa")])

        result = await session.run("feature")

        last = result.last_turn
        assert last.role == "qa"
        assert last.is_error is True

    @pytest.mark.asyncio
    async def test_empty_feature_request_calls_no_agent(self):
        session, dev, qa = _session([], [])

        with pytest.raises(InvalidRequestError) as exc_info:
            await session.run("   ")

        assert exc_info.value.context.error_type is ErrorType.INVALID_REQUEST
        assert dev.calls == [] and qa.calls == []


class TestCollaborationTranscript:
    @pytest.mark.asyncio
    async def test_transcript_order(self):
        session, _, _ = _session([code("v1"), code("v2")], [report(("d", "p")), report()])

        result = await session.run("feature")

        assert [t.role for t in result.transcript] == ["user", "developer", "qa", "developer", "qa"]
        assert result.transcript[0].content == "feature"
        assert result.transcript[-1].content == "No issues found."

    @pytest.mark.asyncio
    async def test_timestamps_non_decreasing(self):
        session, _, _ = _session([code("v1"), code("v2")], [report(("d", "p")), report()])

        result = await session.run("feature")

        stamps = [t.timestamp for t in result.transcript]
        assert stamps == sorted(stamps)

    @pytest.mark.asyncio
    async def test_sessions_do_not_share_state(self):
        dev = ScriptedGenerator([code("a"), code("b")])
        qa = ScriptedReviewer([report(), report()])
        session = CollaborationSession(dev, qa)

        first = await session.run("one")
        second = await session.run("two")

        assert first.session_id != second.session_id
        assert [t.content for t in second.transcript][0] == "two"
        assert len(second.transcript) == 3
