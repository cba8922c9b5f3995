"""Tests for discount selection, effective prices and order totals."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.domain.errors import ValidationError
from app.services.pricing import (
    FeePolicy,
    apply_discount,
    effective_price,
    order_totals,
    select_active_discount,
    to_money,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def discount(value: str, type_: str = "percentage", is_active: bool = True, days: int = 1):
    return SimpleNamespace(
        type=type_,
        value=Decimal(value),
        is_active=is_active,
        valid_from=NOW - timedelta(days=days),
        valid_until=NOW + timedelta(days=days),
    )


class TestSelectActiveDiscount:
    """Choosing the discount that applies at a given instant."""

    def test_picks_highest_value(self) -> None:
        """The active discount with the largest value wins."""
        low, high = discount("10"), discount("25")
        assert select_active_discount([low, high], NOW) is high

    def test_tie_goes_to_first(self) -> None:
        first, second = discount("20"), discount("20")
        assert select_active_discount([first, second], NOW) is first

    def test_skips_inactive_and_out_of_window(self) -> None:
        inactive = discount("50", is_active=False)
        expired = SimpleNamespace(
            type="percentage",
            value=Decimal("40"),
            is_active=True,
            valid_from=NOW - timedelta(days=10),
            valid_until=NOW - timedelta(days=5),
        )
        active = discount("5")
        assert select_active_discount([inactive, expired, active], NOW) is active

    def test_none_when_nothing_applies(self) -> None:
        assert select_active_discount([discount("50", is_active=False)], NOW) is None
        assert select_active_discount([], NOW) is None

    def test_window_bounds_are_inclusive(self) -> None:
        edge = SimpleNamespace(
            type="fixed", value=Decimal("1"), is_active=True, valid_from=NOW, valid_until=NOW
        )
        assert select_active_discount([edge], NOW) is edge

    def test_naive_datetimes_are_treated_as_utc(self) -> None:
        naive = SimpleNamespace(
            type="fixed",
            value=Decimal("1"),
            is_active=True,
            valid_from=(NOW - timedelta(hours=1)).replace(tzinfo=None),
            valid_until=(NOW + timedelta(hours=1)).replace(tzinfo=None),
        )
        assert select_active_discount([naive], NOW) is naive


class TestApplyDiscount:
    """Applying a single discount to a unit price."""

    def test_percentage(self) -> None:
        assert apply_discount(Decimal("10.00"), discount("20")) == Decimal("8.00")

    def test_fixed(self) -> None:
        assert apply_discount(Decimal("10.00"), discount("3.50", "fixed")) == Decimal("6.50")

    def test_fixed_larger_than_price_clamps_to_zero(self) -> None:
        assert apply_discount(Decimal("10.00"), discount("15", "fixed")) == Decimal("0.00")

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            apply_discount(Decimal("10.00"), discount("1", "bogo"))

    def test_rounds_half_up_to_cents(self) -> None:
        assert apply_discount(Decimal("9.99"), discount("15")) == Decimal("8.49")


class TestEffectivePrice:
    def test_without_discount(self) -> None:
        product = SimpleNamespace(price=Decimal("12.5"), discounts=[])
        price = effective_price(product, NOW)

        assert price.unit_price == Decimal("12.50")
        assert price.discounted_price is None
        assert price.price == Decimal("12.50")
        assert price.subtotal(2) == Decimal("25.00")

    def test_with_best_discount(self) -> None:
        product = SimpleNamespace(
            price=Decimal("10.00"),
            discounts=[discount("2", "fixed"), discount("20")],
        )
        price = effective_price(product, NOW)

        # 20 > 2 by value, so the percentage discount is selected
        assert price.discounted_price == Decimal("8.00")
        assert price.subtotal(3) == Decimal("24.00")


class TestFeePolicy:
    """Delivery fee waiver above the free delivery threshold."""

    def test_threshold_waives_delivery(self) -> None:
        fees = FeePolicy(Decimal("15000"), Decimal("2000"), Decimal("100000"))

        assert fees.delivery_fee_for(Decimal("99999")) == Decimal("15000.00")
        assert fees.delivery_fee_for(Decimal("100000")) == Decimal("0.00")
        assert fees.amount_for_free_delivery(Decimal("60000")) == Decimal("40000.00")
        assert fees.amount_for_free_delivery(Decimal("150000")) == Decimal("0.00")

    def test_no_threshold_always_charges(self) -> None:
        fees = FeePolicy(Decimal("2"), Decimal("1"), None)

        assert not fees.is_free_delivery(Decimal("1000000"))
        assert fees.delivery_fee_for(Decimal("1000000")) == Decimal("2.00")
        assert fees.amount_for_free_delivery(Decimal("5")) == Decimal("0.00")


class TestOrderTotals:
    """total_amount = subtotal + delivery_fee + service_fee - total_discount."""

    def test_sums_components(self) -> None:
        totals = order_totals(Decimal("24"), Decimal("2"), Decimal("1"))

        assert totals["total_amount"] == Decimal("27.00")
        assert totals["total_discount"] == Decimal("0.00")

    def test_subtracts_discount(self) -> None:
        totals = order_totals(Decimal("100"), Decimal("10"), Decimal("5"), Decimal("15"))
        assert totals["total_amount"] == Decimal("100.00")

    @pytest.mark.parametrize("total_discount", [Decimal("-1"), Decimal("1000")])
    def test_rejects_invalid_discount(self, total_discount: Decimal) -> None:
        with pytest.raises(ValidationError):
            order_totals(Decimal("10"), Decimal("1"), Decimal("1"), total_discount)


def test_to_money_handles_floats_and_none() -> None:
    assert to_money(0.1 + 0.2) == Decimal("0.30")
    assert to_money(None) == Decimal("0.00")
