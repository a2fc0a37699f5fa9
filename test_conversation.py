"""Tests for session state and transcript handling."""

import logging

import pytest

from codepilot.models.session import SessionStatus, StopReason
from codepilot.orchestration.conversation import ConversationHistory, Session
from codepilot.utils.errors import SessionClosedError
from codepilot.utils.logging import ContextFilter, clear_context, set_context, with_context


class TestConversationHistory:
    def test_turns_kept_in_order(self):
        history = ConversationHistory(session_id="abc")
        history.add_turn("user", "go")
        history.add_turn("developer", "v1")
        history.add_turn("qa", "issue", is_error=True)

        assert len(history) == 3
        assert history.get_turn_count() == 3
        assert [(t.role, t.is_error) for t in history.get_turns()] == [
            ("user", False), ("developer", False), ("qa", True)
        ]

    def test_get_turns_returns_copy(self):
        history = ConversationHistory()
        history.add_turn("user", "go")
        history.get_turns().clear()
        assert len(history) == 1


class TestSession:
    def test_terminate_builds_result(self):
        session = Session(max_rounds=2)
        session.append_turn("user", "go")
        session.current_payload = "artifact"

        result = session.terminate(SessionStatus.SUCCESS, "done", StopReason.NO_ISSUES)

        assert result.artifact == "artifact"
        assert result.session_id == session.session_id
        assert session.status is SessionStatus.SUCCESS

    def test_transcript_frozen_after_termination(self):
        session = Session(max_rounds=1)
        session.append_turn("user", "go")
        session.terminate(SessionStatus.ERROR, "failed", StopReason.AGENT_FAILURE)

        with pytest.raises(SessionClosedError):
            session.append_turn("developer", "late")
        with pytest.raises(SessionClosedError):
            session.terminate(SessionStatus.SUCCESS, "again", StopReason.NO_ISSUES)

    def test_terminate_requires_terminal_status(self):
        session = Session(max_rounds=1)
        session.append_turn("user", "go")
        with pytest.raises(ValueError):
            session.terminate(SessionStatus.RUNNING, "nope", StopReason.NO_ISSUES)

    def test_empty_transcript_rejected(self):
        with pytest.raises(SessionClosedError):
            Session(max_rounds=1).terminate(SessionStatus.SUCCESS, "done", StopReason.NO_ISSUES)

    def test_unique_ids(self):
        assert Session(max_rounds=1).session_id != Session(max_rounds=1).session_id


class TestLoggingContext:
    def _record(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
        ContextFilter().filter(record)
        return record

    def test_defaults(self):
        clear_context()
        record = self._record()
        assert record.session_id == "-"
        assert record.phase == "-"

    def test_set_context(self):
        set_context(session_id="abc123", phase="qa")
        record = self._record()
        assert (record.session_id, record.phase) == ("abc123", "qa")

    @pytest.mark.asyncio
    async def test_with_context_restores_previous(self):
        set_context(phase="outer")

        @with_context(phase="inner")
        async def inner():
            return self._record().phase

        assert await inner() == "inner"
        assert self._record().phase == "outer"
