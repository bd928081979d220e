"""Tests for custom exception hierarchy."""

from nasiya.exceptions import (
    AlreadyProcessedError,
    ConfigurationError,
    ConflictError,
    EntityNotFoundError,
    ForbiddenError,
    InvalidEntityStateError,
    NasiyaError,
    RateLimitedError,
    ReferentialIntegrityError,
    SinkError,
    UnauthorizedError,
    ValidationError,
)


class TestExceptionHierarchy:
    """Test exception inheritance chain."""

    def test_nasiya_error_is_exception(self) -> None:
        assert isinstance(NasiyaError("test"), Exception)

    def test_entity_not_found_is_nasiya_error(self) -> None:
        assert isinstance(EntityNotFoundError("test"), NasiyaError)

    def test_referential_integrity_is_entity_not_found(self) -> None:
        err = ReferentialIntegrityError("test")
        assert isinstance(err, EntityNotFoundError)
        assert isinstance(err, NasiyaError)

    def test_invalid_entity_state_is_conflict(self) -> None:
        assert isinstance(InvalidEntityStateError("test"), ConflictError)

    def test_already_processed_is_validation_error(self) -> None:
        assert isinstance(AlreadyProcessedError("test"), ValidationError)

    def test_configuration_error_is_nasiya_error(self) -> None:
        assert isinstance(ConfigurationError("test"), NasiyaError)

    def test_sink_error_is_nasiya_error(self) -> None:
        assert isinstance(SinkError("test"), NasiyaError)

    def test_exception_message(self) -> None:
        err = ReferentialIntegrityError("Customer cust-001 not found")
        assert str(err) == "Customer cust-001 not found"
        assert err.message == "Customer cust-001 not found"


class TestHttpMapping:
    """Status codes and error envelopes surfaced by the API."""

    def test_status_codes(self) -> None:
        assert ValidationError().status_code == 400
        assert AlreadyProcessedError().status_code == 400
        assert UnauthorizedError().status_code == 401
        assert ForbiddenError().status_code == 403
        assert EntityNotFoundError().status_code == 404
        assert InvalidEntityStateError().status_code == 409
        assert RateLimitedError().status_code == 429
        assert NasiyaError().status_code == 500

    def test_codes(self) -> None:
        assert ValidationError().code == "VALIDATION_ERROR"
        assert AlreadyProcessedError().code == "ALREADY_PROCESSED"
        assert EntityNotFoundError().code == "NOT_FOUND"
        assert RateLimitedError().code == "RATE_LIMITED"

    def test_to_dict_without_errors(self) -> None:
        body = EntityNotFoundError("Contract c-1 not found").to_dict()

        assert body == {"status": "error", "code": "NOT_FOUND", "message": "Contract c-1 not found"}

    def test_to_dict_with_errors(self) -> None:
        err = ValidationError("Bad amount", errors=[{"field": "amount"}])

        body = err.to_dict()

        assert body["errors"] == [{"field": "amount"}]

    def test_rate_limited_carries_retry_after(self) -> None:
        err = RateLimitedError("slow down", retry_after=12)

        assert err.retry_after == 12
        assert err.message == "slow down"
