"""
Tests for error handling.
Tests custom exceptions and error response formatting.
"""

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError
from unittest.mock import Mock
import json

from estatehub.services.error_handler import ErrorHandlerService, ERROR_RESPONSES
from estatehub.utils.exceptions import (
    BusinessRuleViolationError,
    ConflictError,
    DuplicateResourceError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    UnauthorizedError,
    ValidationError,
)


class TestErrorHandlerService:
    """Test error handler service functionality."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            error_code="TEST_ERROR",
            message="Test error message",
            details=[{"field": "test", "message": "Test field error"}],
            request_id="test123"
        )

        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Test error message"
        assert response["error"]["request_id"] == "test123"
        assert response["error"]["details"][0]["field"] == "test"
        assert "timestamp" in response["error"]

    def test_format_error_response_omits_empty_details(self):
        response = ErrorHandlerService.format_error_response("NOT_FOUND", "Gone")
        assert "details" not in response["error"]
        assert "request_id" not in response["error"]

    def test_handle_api_exception(self):
        response = ErrorHandlerService.handle_api_exception(NotFoundError("Booking", "abc"))

        assert response.status_code == 404
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "NOT_FOUND"
        assert response_data["error"]["message"] == "Booking not found with ID: abc"
        assert len(response_data["error"]["request_id"]) == 8

    def test_handle_validation_exception_with_fields(self):
        exception = ValidationError(
            "Passwords do not match",
            field_errors=[{"field": "confirm_password", "message": "Passwords do not match"}]
        )

        response = ErrorHandlerService.handle_api_exception(exception)

        assert response.status_code == 422
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "VALIDATION_ERROR"
        assert response_data["error"]["details"] == [
            {"field": "confirm_password", "message": "Passwords do not match"}
        ]

    def test_handle_validation_error(self):
        mock_error = Mock()
        mock_error.errors.return_value = [
            {"loc": ("body", "price"), "msg": "Input should be greater than 0", "type": "greater_than"},
            {"loc": ("query", "page"), "msg": "Input should be a valid integer", "type": "int_parsing"},
            {"loc": ("body",), "msg": "Field required", "type": "missing"},
        ]

        response = ErrorHandlerService.handle_validation_error(mock_error)

        assert response.status_code == 422
        response_data = json.loads(response.body)
        assert response_data["error"]["message"] == "Request validation failed"
        fields = [detail["field"] for detail in response_data["error"]["details"]]
        assert fields == ["price", "page", None]

    def test_handle_integrity_error(self):
        integrity_error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))

        response = ErrorHandlerService.handle_database_error(integrity_error)

        assert response.status_code == 409
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "CONFLICT"
        assert response_data["error"]["message"] == "Constraint violation: Duplicate value for unique field"

    def test_handle_operational_error(self):
        response = ErrorHandlerService.handle_database_error(
            OperationalError("SELECT 1", {}, Exception("database is locked"))
        )

        assert response.status_code == 500
        assert json.loads(response.body)["error"]["code"] == "DATABASE_ERROR"

    def test_handle_http_exception(self):
        response = ErrorHandlerService.handle_http_exception(HTTPException(503, "Database connection failed"))

        assert response.status_code == 503
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "HTTP_503"
        assert response_data["error"]["message"] == "Database connection failed"

    def test_handle_unexpected_error_hides_details(self):
        response = ErrorHandlerService.handle_unexpected_error(Exception("secret connection string"))

        assert response.status_code == 500
        response_data = json.loads(response.body)
        assert response_data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in response_data["error"]["message"]

    def test_request_id_taken_from_request_state(self):
        request = Mock()
        request.state.request_id = "req-42"
        request.url.path = "/api/v1/properties"

        response = ErrorHandlerService.handle_api_exception(UnauthorizedError(), request)

        assert json.loads(response.body)["error"]["request_id"] == "req-42"

    def test_documented_error_responses(self):
        assert set(ERROR_RESPONSES) == {400, 401, 403, 404, 409, 422}
        example = ERROR_RESPONSES[409]["content"]["application/json"]["example"]
        assert example["error"]["code"] == "INVALID_TRANSITION"


class TestCustomExceptions:
    """Status codes and messages of the domain exceptions."""

    def test_invalid_transition(self):
        error = InvalidTransitionError("booking", "approved", "cancelled", "approved bookings are final")

        assert error.status_code == 409
        assert error.error_code == "INVALID_TRANSITION"
        assert error.detail == "Cannot move booking from 'approved' to 'cancelled': approved bookings are final"
        assert (error.current, error.target) == ("approved", "cancelled")
        assert isinstance(error, ConflictError)

    def test_business_rule_violation(self):
        error = BusinessRuleViolationError("booking_not_approved", "Only approved bookings can be paid")

        assert error.status_code == 400
        assert error.detail == "Business rule violation: booking_not_approved - Only approved bookings can be paid"

    @pytest.mark.parametrize("exception,status_code,message", [
        (PropertyNotFoundError("p-1"), 404, "Property not found with ID: p-1"),
        (PropertyOwnershipError(), 403, "You don't own this property"),
        (InsufficientPermissionsError("create properties"), 403, "Insufficient permissions to create properties"),
        (DuplicateResourceError("User", "a@b.com"), 409, "User with identifier 'a@b.com' already exists"),
        (UnauthorizedError(), 401, "Authentication required"),
    ])
    def test_status_and_message(self, exception, status_code, message):
        assert exception.status_code == status_code
        assert exception.detail == message
