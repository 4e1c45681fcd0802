"""Unit tests for error classification utilities."""

import pytest
from pydantic import ValidationError

from whatnow.core.auth_client import AuthenticationError
from whatnow.core.db_client import DatabaseError, RecordNotFoundError
from whatnow.core.errors import ErrorCode, ErrorSeverity, classify_error_with_response
from whatnow.domain.create_models import StateQuery
from whatnow.services.in_progress import TaskNotStartedError
from whatnow.services.swipe_session import InvalidSessionTransitionError, SessionNotFoundError


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    """Tests for classify_error_with_response function."""

    def test_record_not_found(self):
        response = classify_error_with_response(RecordNotFoundError("Record not found in tasks: abc"))

        assert response.code == ErrorCode.ERR_RECORD_NOT_FOUND
        assert response.severity == ErrorSeverity.LOW

    def test_session_not_found(self):
        response = classify_error_with_response(SessionNotFoundError("Swipe session not found: abc"))

        assert response.code == ErrorCode.ERR_RECORD_NOT_FOUND

    def test_permission_denied(self):
        response = classify_error_with_response(PermissionError("Task t1 does not belong to user u1"))

        assert response.code == ErrorCode.ERR_PERMISSION_DENIED
        assert response.severity == ErrorSeverity.MEDIUM

    def test_invalid_session_transition(self):
        response = classify_error_with_response(InvalidSessionTransitionError("Cannot skip: session s is accepted"))

        assert response.code == ErrorCode.ERR_INVALID_SESSION_TRANSITION
        assert "new" in response.suggestion.lower()

    def test_task_not_started(self):
        response = classify_error_with_response(TaskNotStartedError("Task t1 is not in progress"))

        assert response.code == ErrorCode.ERR_TASK_NOT_STARTED
        assert response.severity == ErrorSeverity.LOW

    def test_invalid_invite_code(self):
        response = classify_error_with_response(ValueError("Invalid invite code: 'xx'"))

        assert response.code == ErrorCode.ERR_INVALID_INVITE_CODE

    def test_already_member(self):
        response = classify_error_with_response(ValueError("You are already a member of Flatmates"))

        assert response.code == ErrorCode.ERR_ALREADY_MEMBER

    def test_value_error(self):
        response = classify_error_with_response(ValueError("Nothing to import: enter at least one task"))

        assert response.code == ErrorCode.ERR_VALIDATION
        assert response.message == "Nothing to import: enter at least one task"

    def test_pydantic_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            StateQuery()

        response = classify_error_with_response(exc_info.value)

        assert response.code == ErrorCode.ERR_VALIDATION
        assert "select at least one" in response.message.lower()

    def test_authentication_error(self):
        response = classify_error_with_response(AuthenticationError("Authentication failed: invalid token"))

        assert response.code == ErrorCode.ERR_AUTHENTICATION_FAILED
        assert response.severity == ErrorSeverity.HIGH

    @pytest.mark.parametrize(
        "exception",
        [
            ConnectionError("Connection refused"),
            TimeoutError("Request timed out"),
            Exception("upstream returned 503"),
        ],
    )
    def test_network_errors(self, exception):
        assert classify_error_with_response(exception).code == ErrorCode.ERR_NETWORK_ERROR

    def test_database_error(self):
        response = classify_error_with_response(DatabaseError("Failed to update record in profiles: 400"))

        assert response.code == ErrorCode.ERR_STORAGE

    def test_unknown_error(self):
        response = classify_error_with_response(RuntimeError("something odd"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert "contact support" in response.suggestion.lower()
