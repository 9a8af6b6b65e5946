"""Unit tests for the application error taxonomy."""

import pytest

from promptatrium.core.errors import (
    ERROR_STATUS_CODES,
    AppError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ErrorType,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


class TestErrorStatusCodes:
    @pytest.mark.parametrize(
        "error,status_code,error_type",
        [
            (ValidationError("bad"), 400, ErrorType.VALIDATION),
            (AuthenticationError(), 401, ErrorType.AUTHENTICATION),
            (AuthorizationError(), 403, ErrorType.AUTHORIZATION),
            (NotFoundError("Prompt"), 404, ErrorType.NOT_FOUND),
            (ConflictError(), 409, ErrorType.CONFLICT),
            (RateLimitError("slow down", retry_after=60), 429, ErrorType.RATE_LIMIT),
            (ExternalServiceError("paypal", "down"), 502, ErrorType.EXTERNAL_SERVICE),
        ],
    )
    def test_subclass_maps_to_status(self, error, status_code, error_type):
        assert error.status_code == status_code
        assert error.error_type == error_type
        assert error.is_operational is True

    def test_every_error_type_has_a_status(self):
        assert set(ERROR_STATUS_CODES) == set(ErrorType)

    def test_explicit_status_overrides_mapping(self):
        error = AppError("teapot", ErrorType.VALIDATION, status_code=418)
        assert error.status_code == 418

    def test_default_app_error_is_internal(self):
        error = AppError("boom", is_operational=False)
        assert error.status_code == 500
        assert error.error_type == ErrorType.INTERNAL
        assert error.is_operational is False


class TestErrorMessages:
    def test_default_messages(self):
        assert AuthenticationError().message == "Unauthorized"
        assert AuthorizationError().message == "Insufficient permissions"
        assert ConflictError().message == "Resource already exists"

    def test_not_found_names_the_resource(self):
        error = NotFoundError("Community")
        assert error.message == "Community not found"
        assert error.metadata == {"resource": "Community"}
        assert str(error) == "Community not found"

    def test_rate_limit_keeps_retry_after(self):
        error = RateLimitError("Too many requests", retry_after=900)
        assert error.retry_after == 900
        assert error.metadata["retry_after"] == 900

    def test_external_service_error_prefixes_service(self):
        error = ExternalServiceError("openai", "timeout")
        assert error.message == "openai: timeout"
        assert error.metadata == {"service": "openai", "reason": "timeout"}

    def test_repr_includes_type_and_status(self):
        assert repr(ValidationError("bad input")) == (
            "ValidationError(type=VALIDATION_ERROR, status=400, message='bad input')"
        )
