"""Unit tests for the exception hierarchy"""
import logging
import pytest
from datetime import datetime

import psycopg

from lms_achievements.exceptions import (
    AchievementEngineError,
    CriteriaValidationError,
    DatabaseError,
    ConnectionError,
    QueryError,
    ConfigurationError,
    wrap_external_exception,
)


class TestAchievementEngineError:
    """Test base exception class"""

    def test_basic_exception(self):
        error = AchievementEngineError("Test error")
        assert error.message == "Test error"
        assert str(error) == "Test error"
        assert error.request_id is not None
        assert isinstance(error.timestamp, datetime)
        assert error.timestamp.tzinfo is not None

    def test_exception_with_context(self):
        error = AchievementEngineError(
            message="Award failed",
            user_id="user-1",
            operation="insert_user_achievement",
            context={"achievement_id": "a1"},
        )
        assert error.user_id == "user-1"
        assert error.operation == "insert_user_achievement"
        assert error.context["achievement_id"] == "a1"

    def test_to_dict(self):
        error = AchievementEngineError("Boom", operation="load_candidates")
        data = error.to_dict()
        assert data["error"] == "AchievementEngineError"
        assert data["message"] == "Boom"
        assert data["operation"] == "load_candidates"
        assert "request_id" in data
        assert "timestamp" in data

    def test_logs_on_creation(self, caplog):
        with caplog.at_level(logging.ERROR, logger="lms_achievements.exceptions"):
            AchievementEngineError("Logged error")
        assert "Logged error" in caplog.text


class TestSubclasses:

    def test_criteria_validation_error_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="lms_achievements.exceptions"):
            error = CriteriaValidationError("bad rule", achievement_id="a1", criteria={"type": "x"})
        assert error.achievement_id == "a1"
        assert error.context["criteria"] == {"type": "x"}
        assert caplog.records[-1].levelno == logging.WARNING

    def test_database_hierarchy(self):
        assert issubclass(ConnectionError, DatabaseError)
        assert issubclass(QueryError, DatabaseError)
        assert issubclass(DatabaseError, AchievementEngineError)

    def test_connection_error_default_message(self):
        assert ConnectionError().message == "Database connection failed"

    def test_query_error_keeps_query(self):
        error = QueryError("failed", query="SELECT 1")
        assert error.query == "SELECT 1"
        assert error.context["query"] == "SELECT 1"

    def test_configuration_error(self):
        error = ConfigurationError("bad", config_key="DATABASE_URL")
        assert error.config_key == "DATABASE_URL"


class TestWrapExternalException:

    def test_operational_error_becomes_connection_error(self):
        wrapped = wrap_external_exception(psycopg.OperationalError("refused"), operation="get_all_achievements")
        assert isinstance(wrapped, ConnectionError)
        assert wrapped.operation == "get_all_achievements"
        assert isinstance(wrapped.cause, psycopg.OperationalError)

    def test_psycopg_error_becomes_query_error(self):
        wrapped = wrap_external_exception(psycopg.ProgrammingError("syntax"), operation="q")
        assert isinstance(wrapped, QueryError)

    def test_engine_errors_pass_through(self):
        original = QueryError("already wrapped")
        assert wrap_external_exception(original, operation="q") is original

    def test_unknown_error_becomes_base(self):
        wrapped = wrap_external_exception(ValueError("odd"), operation="parse", user_id="user-1")
        assert type(wrapped) is AchievementEngineError
        assert wrapped.user_id == "user-1"
        assert "parse failed" in wrapped.message
