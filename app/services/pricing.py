# app/services/pricing.py
"""
Ceny katalogowe: wybor aktywnego rabatu, cena efektywna, oplaty zamowienia.
Czyste funkcje, bez dostepu do bazy.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from app.domain.enums import DiscountType
from app.domain.errors import ValidationError
from app.utils.clock import as_utc, utcnow
from app.utils.settings import DELIVERY_FEE, SERVICE_FEE, FREE_DELIVERY_THRESHOLD

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class EffectivePrice:
    unit_price: Decimal
    discounted_price: Optional[Decimal]
    discount: Optional[Any]

    @property
    def price(self) -> Decimal:
        """Cena, ktora faktycznie placi kupujacy za jednostke."""
        if self.discounted_price is not None:
            return self.discounted_price
        return self.unit_price

    def subtotal(self, quantity: int) -> Decimal:
        return to_money(self.price * quantity)


def is_discount_active(discount: Any, as_of: datetime) -> bool:
    if not discount.is_active:
        return False
    return as_utc(discount.valid_from) <= as_of <= as_utc(discount.valid_until)


def select_active_discount(discounts: Iterable[Any], as_of: datetime | None = None):
    """
    Sposrod aktywnych rabatow wybiera ten z najwieksza wartoscia.
    Przy remisie wygrywa pierwszy na liscie.
    """
    as_of = as_utc(as_of) if as_of else utcnow()

    best = None
    for discount in discounts:
        if not is_discount_active(discount, as_of):
            continue
        if best is None or Decimal(str(discount.value)) > Decimal(str(best.value)):
            best = discount
    return best


def apply_discount(price: Any, discount: Any) -> Decimal:
    price = to_money(price)
    value = Decimal(str(discount.value))

    if discount.type == DiscountType.PERCENTAGE.value:
        discounted = price * (Decimal("1") - value / Decimal("100"))
    elif discount.type == DiscountType.FIXED.value:
        discounted = price - value
    else:
        raise ValidationError(f"Unknown discount type: {discount.type}")

    # rabat nie moze zrobic ceny ujemnej
    return max(to_money(discounted), ZERO)


def effective_price(product: Any, as_of: datetime | None = None) -> EffectivePrice:
    unit_price = to_money(product.price)
    discount = select_active_discount(product.discounts or [], as_of)

    if discount is None:
        return EffectivePrice(unit_price=unit_price, discounted_price=None, discount=None)

    return EffectivePrice(
        unit_price=unit_price,
        discounted_price=apply_discount(unit_price, discount),
        discount=discount,
    )


@dataclass(frozen=True)
class FeePolicy:
    delivery_fee: Decimal
    service_fee: Decimal
    free_delivery_threshold: Optional[Decimal] = None

    @classmethod
    def from_settings(cls) -> "FeePolicy":
        threshold = to_money(FREE_DELIVERY_THRESHOLD)
        return cls(
            delivery_fee=to_money(DELIVERY_FEE),
            service_fee=to_money(SERVICE_FEE),
            free_delivery_threshold=threshold if threshold > ZERO else None,
        )

    def is_free_delivery(self, subtotal: Decimal) -> bool:
        if not self.free_delivery_threshold:
            return False
        return subtotal >= self.free_delivery_threshold

    def delivery_fee_for(self, subtotal: Decimal) -> Decimal:
        return ZERO if self.is_free_delivery(subtotal) else to_money(self.delivery_fee)

    def amount_for_free_delivery(self, subtotal: Decimal) -> Decimal:
        if not self.free_delivery_threshold:
            return ZERO
        return max(to_money(self.free_delivery_threshold - subtotal), ZERO)


def order_totals(
    subtotal: Decimal,
    delivery_fee: Decimal,
    service_fee: Decimal,
    total_discount: Decimal = ZERO,
) -> dict:
    subtotal = to_money(subtotal)
    delivery_fee = to_money(delivery_fee)
    service_fee = to_money(service_fee)
    total_discount = to_money(total_discount)

    if total_discount < ZERO:
        raise ValidationError("Discount cannot be negative")

    total_amount = subtotal + delivery_fee + service_fee - total_discount
    if total_amount < ZERO:
        raise ValidationError("Discount exceeds order total")

    return {
        "subtotal": subtotal,
        "delivery_fee": delivery_fee,
        "service_fee": service_fee,
        "total_discount": total_discount,
        "total_amount": total_amount,
    }
