"""Tests for the error taxonomy and its HTTP status table."""

from __future__ import annotations

import pytest

from app.domain.errors import (
    AuthError,
    ConflictError,
    ExpiredError,
    ForbiddenError,
    InternalError,
    MarketError,
    NotFoundError,
    ValidationError,
    status_for,
)


class TestStatusFor:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationError(), 400),
            (AuthError(), 401),
            (ExpiredError(), 401),
            (ForbiddenError(), 403),
            (NotFoundError(), 404),
            (ConflictError(), 400),
            (InternalError(), 500),
            (MarketError(), 500),
        ],
    )
    def test_maps_kind_to_status(self, error: MarketError, status: int) -> None:
        assert status_for(error) == status

    def test_subclass_inherits_status(self) -> None:
        """Kinds are resolved along the class hierarchy, not by message."""

        class OutOfStock(ConflictError):
            pass

        assert status_for(OutOfStock("Not found in warehouse")) == 400


class TestMarketError:
    def test_default_message(self) -> None:
        assert NotFoundError().message == "Not found"
        assert str(AuthError()) == "Unauthorized"

    def test_custom_message_and_details(self) -> None:
        error = ValidationError("Bad field", {"field": "email"})

        assert error.message == "Bad field"
        assert error.details == {"field": "email"}

    def test_expired_is_auth_error(self) -> None:
        assert isinstance(ExpiredError(), AuthError)
