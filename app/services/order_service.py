# app/services/order_service.py
import math
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.domain.enums import OrderStatus, PaymentStatus, TERMINAL_ORDER_STATUSES
from app.domain.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.repos.address_repo import AddressRepo
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.services.pricing import ZERO, FeePolicy, order_totals, to_money
from app.utils.clock import utcnow
from app.utils.settings import CURRENCY, PAYMENT_WINDOW_HOURS, REFUND_ESTIMATED_DAYS
from app.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100

# dozwolone ruchy sprzedawcy; platnosc (PAID) potwierdza admin
SELLER_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT.value: frozenset({OrderStatus.CANCELLED.value}),
    OrderStatus.PAID.value: frozenset({OrderStatus.PROCESSING.value, OrderStatus.CANCELLED.value}),
    OrderStatus.PROCESSING.value: frozenset({OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value}),
    OrderStatus.SHIPPED.value: frozenset({OrderStatus.DELIVERED.value}),
}


def _status_value(status) -> str:
    return status.value if isinstance(status, OrderStatus) else status


def _item_to_dict(item: OrderItemModel) -> Dict[str, Any]:
    return {
        "order_item_id": item.id,
        "product_id": item.product_id,
        "product_name": item.product_name,
        "product_image": item.product_image,
        "quantity": item.quantity,
        "unit_price": to_money(item.unit_price),
        "discount": to_money(item.discount),
        "subtotal": to_money(item.subtotal),
    }


def _seller(order: OrderModel) -> Dict[str, Any]:
    return {"user_id": order.seller_id, "name": order.seller.name}


def _page(page: int, limit: int) -> tuple[int, int]:
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
    return page, limit


def _status_out(order: OrderModel) -> Dict[str, Any]:
    return {
        "order_id": order.id,
        "status": order.status,
        "tracking_number": order.tracking_number,
        "paid_at": order.paid_at,
        "cancelled_at": order.cancelled_at,
    }


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current_page": page,
        "total_pages": math.ceil(total / limit) if total else 0,
        "total_items": total,
    }


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Zamowienie powstaje z zaznaczonych pozycji koszyka, jedno na sprzedawce.
    """

    def __init__(
        self,
        db: Session,
        fees: FeePolicy | None = None,
        refund_estimated_days: int = REFUND_ESTIMATED_DAYS,
        payment_window_hours: int = PAYMENT_WINDOW_HOURS,
    ):
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.addresses = AddressRepo(db)
        self.fees = fees or FeePolicy.from_settings()
        self.refund_estimated_days = refund_estimated_days
        self.payment_window_hours = payment_window_hours

    def _new_order_number(self, now: datetime) -> str:
        while True:
            number = f"FM{now:%Y%m%d}{secrets.token_hex(3).upper()}"
            if not self.repo.order_number_exists(number):
                return number

    def _visible_order(self, order_id: int, caller_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if caller_id not in (order.buyer_id, order.seller_id):
            logger.warning(f"User {caller_id} denied access to order {order_id}")
            raise ForbiddenError("You do not have access to this order")

        return order

    def create_order(
        self,
        buyer_id: int,
        cart_item_ids: List[int] | None,
        delivery_address_id: int | None,
        delivery_method: str = "home_delivery",
        payment_method: str = "bank_transfer",
        delivery_date: datetime | None = None,
        delivery_time_slot: str | None = "morning",
        notes: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamowien z koszyka.

        1. Waliduje wybor pozycji i adres dostawy
        2. Blokuje pozycje koszyka (FOR UPDATE)
        3. Grupuje po sprzedawcy i tworzy po jednym zamowieniu
        4. Usuwa przeniesione pozycje z koszyka
        Wszystko w jednej transakcji.
        """
        if cart_item_ids is not None and len(cart_item_ids) == 0:
            raise ValidationError("At least one cart item must be selected")

        if not delivery_address_id:
            raise ValidationError("Delivery address is required")

        address = self.addresses.get_address(delivery_address_id)
        if not address:
            raise NotFoundError("Delivery address not found")
        if address.user_id != buyer_id:
            raise ForbiddenError("You do not have access to this address")

        now = utcnow()
        created: List[OrderModel] = []

        try:
            items = self.carts.get_items_for_checkout(
                buyer_id, list(dict.fromkeys(cart_item_ids)) if cart_item_ids is not None else None
            )
            if not items:
                raise NotFoundError("No cart items found")

            by_seller: Dict[int, list] = {}
            for item in items:
                by_seller.setdefault(item.product.seller_id, []).append(item)

            for seller_id, lines in by_seller.items():
                subtotal = sum((to_money(i.subtotal) for i in lines), ZERO)
                totals = order_totals(
                    subtotal=subtotal,
                    delivery_fee=self.fees.delivery_fee_for(subtotal),
                    service_fee=self.fees.service_fee,
                )

                order = OrderModel(
                    order_number=self._new_order_number(now),
                    buyer_id=buyer_id,
                    seller_id=seller_id,
                    status=OrderStatus.PENDING_PAYMENT.value,
                    currency=CURRENCY,
                    payment_method=payment_method,
                    payment_status=PaymentStatus.PENDING.value,
                    delivery_method=delivery_method,
                    delivery_address_id=address.id,
                    delivery_date=delivery_date,
                    delivery_time_slot=delivery_time_slot,
                    notes=notes,
                    created_at=now,
                    updated_at=now,
                    **totals,
                )

                for line in lines:
                    unit_price = to_money(line.unit_price)
                    paid_price = to_money(line.discount_price) if line.discount_price is not None else unit_price
                    order.items.append(
                        OrderItemModel(
                            product_id=line.product_id,
                            product_name=line.product.name,
                            product_image=line.product.image_url,
                            quantity=line.quantity,
                            unit_price=unit_price,
                            discount=to_money((unit_price - paid_price) * line.quantity),
                            subtotal=to_money(line.subtotal),
                        )
                    )

                created.append(self.repo.add_order(order))

            self.carts.delete_items(i.id for i in items)
            self.repo.commit()

        except Exception:
            self.repo.rollback()
            raise

        grand_total = sum((to_money(o.total_amount) for o in created), ZERO)
        logger.info(
            f"User {buyer_id} placed {len(created)} order(s): "
            f"{', '.join(o.order_number for o in created)} total {grand_total}"
        )

        return {
            "orders": [
                {
                    "order_id": o.id,
                    "order_number": o.order_number,
                    "seller_id": o.seller_id,
                    "status": o.status,
                    "subtotal": to_money(o.subtotal),
                    "delivery_fee": to_money(o.delivery_fee),
                    "service_fee": to_money(o.service_fee),
                    "total_discount": to_money(o.total_discount),
                    "total_amount": to_money(o.total_amount),
                }
                for o in created
            ],
            "payment_summary": {
                "total_orders": len(created),
                "grand_total": grand_total,
                "payment_method": payment_method,
                "valid_until": now + timedelta(hours=self.payment_window_hours),
            },
        }

    def _summary(self, order: OrderModel) -> Dict[str, Any]:
        items = [_item_to_dict(i) for i in order.items]
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "buyer_id": order.buyer_id,
            "seller": _seller(order),
            "items": items,
            "item_count": len(items),
            "total_quantity": sum(i["quantity"] for i in items),
            "total_amount": to_money(order.total_amount),
            "currency": order.currency,
            "delivery_method": order.delivery_method,
            "tracking_number": order.tracking_number,
            "created_at": order.created_at,
        }

    def list_orders(
        self,
        user_id: int,
        role: str = "buyer",
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[List[Dict[str, Any]], Dict[str, int]]:
        if role not in ("buyer", "seller"):
            raise ValidationError("Role must be 'buyer' or 'seller'")
        page, limit = _page(page, limit)

        orders, total = self.repo.list_orders(
            buyer_id=user_id if role == "buyer" else None,
            seller_id=user_id if role == "seller" else None,
            status=_status_value(status) if status else None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return [self._summary(o) for o in orders], _pagination(page, limit, total)

    def list_all(
        self,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[List[Dict[str, Any]], Dict[str, int]]:
        page, limit = _page(page, limit)
        orders, total = self.repo.list_orders(
            status=_status_value(status) if status else None,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return [self._summary(o) for o in orders], _pagination(page, limit, total)

    def get_order(self, order_id: int, caller_id: int) -> Dict[str, Any]:
        order = self._visible_order(order_id, caller_id)

        timeline = [{"status": "created", "timestamp": order.created_at}]
        if order.paid_at:
            timeline.append({"status": "paid", "timestamp": order.paid_at})
        if order.cancelled_at:
            timeline.append({"status": "cancelled", "timestamp": order.cancelled_at})

        address = order.delivery_address
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "buyer_id": order.buyer_id,
            "seller": _seller(order),
            "items": [_item_to_dict(i) for i in order.items],
            "delivery": {
                "method": order.delivery_method,
                "address": {
                    "address_id": address.id,
                    "full_address": address.full_address,
                    "recipient_name": address.recipient_name,
                    "phone": address.phone,
                } if address else None,
                "date": order.delivery_date,
                "time_slot": order.delivery_time_slot,
                "fee": to_money(order.delivery_fee),
                "tracking_number": order.tracking_number,
            },
            "pricing": {
                "subtotal": to_money(order.subtotal),
                "delivery_fee": to_money(order.delivery_fee),
                "service_fee": to_money(order.service_fee),
                "total_discount": to_money(order.total_discount),
                "total": to_money(order.total_amount),
            },
            "payment": {
                "method": order.payment_method,
                "status": order.payment_status,
                "paid_at": order.paid_at,
            },
            "timeline": timeline,
            "notes": order.notes,
            "cancelled_reason": order.cancelled_reason,
            "cancelled_at": order.cancelled_at,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def cancel(self, order_id: int, caller_id: int, reason: str | None, details: str | None = None) -> Dict[str, Any]:
        order = self._visible_order(order_id, caller_id)

        if not reason or not reason.strip():
            raise ValidationError("Cancellation reason is required")

        if order.status in TERMINAL_ORDER_STATUSES:
            raise ConflictError("Order cannot be cancelled")

        now = utcnow()
        try:
            # compare-and-set: drugi rownolegly cancel nie zmieni juz wiersza
            rowcount = self.repo.update_order(
                order.id,
                {
                    "status": OrderStatus.CANCELLED.value,
                    "cancelled_reason": f"{reason}: {details}" if details else reason,
                    "cancelled_at": now,
                    "updated_at": now,
                },
                only_if_status_not_in=TERMINAL_ORDER_STATUSES,
            )
            if rowcount == 0:
                raise ConflictError("Order cannot be cancelled")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} cancelled by user {caller_id}")

        refund = None
        if order.paid_at:
            refund = {
                "amount": to_money(order.total_amount),
                "method": order.payment_method,
                "estimated_days": self.refund_estimated_days,
            }

        return {
            "order_id": order.id,
            "status": OrderStatus.CANCELLED.value,
            "refund": refund,
        }

    def set_status(self, order_id: int, status, tracking_number: str | None = None) -> Dict[str, Any]:
        status = _status_value(status)
        if status not in {s.value for s in OrderStatus}:
            raise ValidationError("Invalid order status")

        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        now = utcnow()
        values: Dict[str, Any] = {"status": status, "updated_at": now}
        if tracking_number is not None:
            values["tracking_number"] = tracking_number
        if status == OrderStatus.PAID.value and order.paid_at is None:
            values["paid_at"] = now
            values["payment_status"] = PaymentStatus.PAID.value
        if status == OrderStatus.CANCELLED.value and order.cancelled_at is None:
            values["cancelled_at"] = now

        previous = order.status
        try:
            self.repo.update_order(order.id, values)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.order_number} status {previous} -> {status}")

        return _status_out(self.repo.get_order(order.id))

    def advance_status(
        self,
        order_id: int,
        seller_id: int,
        status=None,
        tracking_number: str | None = None,
        cancelled_reason: str | None = None,
    ) -> Dict[str, Any]:
        """
        Use Case: Sprzedawca prowadzi zamowienie dalej.

        PAID -> PROCESSING -> SHIPPED -> DELIVERED, anulowanie tylko przed wysylka.
        Kolejnosc bledow: 404, 403 (nie sprzedawca), 400 (zly status / niedozwolony ruch).
        Sam tracking_number mozna ustawic bez zmiany statusu.
        """
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if order.seller_id != seller_id:
            logger.warning(f"User {seller_id} tried to update order {order_id} of seller {order.seller_id}")
            raise ForbiddenError("You do not have access to this order")

        if status is None and tracking_number is None:
            raise ValidationError("Nothing to update")

        current = order.status
        now = utcnow()
        values: Dict[str, Any] = {"updated_at": now}

        if status is not None:
            status = _status_value(status)
            if status not in {s.value for s in OrderStatus}:
                raise ValidationError("Invalid order status")
            if status not in SELLER_TRANSITIONS.get(current, frozenset()):
                raise ConflictError(f"Cannot transition from {current} to {status}")

            values["status"] = status
            if status == OrderStatus.CANCELLED.value:
                values["cancelled_at"] = now
                if cancelled_reason:
                    values["cancelled_reason"] = cancelled_reason

        if tracking_number is not None:
            values["tracking_number"] = tracking_number

        try:
            # compare-and-set: status nie zmienil sie od odczytu
            rowcount = self.repo.update_order(order.id, values, only_if_status=current)
            if rowcount == 0:
                raise ConflictError("Order status changed, please retry")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        if status is not None:
            logger.info(f"Order {order.order_number} moved by seller {seller_id}: {current} -> {status}")
        else:
            logger.info(f"Order {order.order_number} tracking number set by seller {seller_id}")

        return _status_out(self.repo.get_order(order.id))
