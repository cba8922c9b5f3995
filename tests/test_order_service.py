"""Tests for order creation, visibility, cancellation, seller and admin status changes."""

from __future__ import annotations

import re
from decimal import Decimal

import pytest
from sqlalchemy import select

from app.data.models import CartItemModel, OrderModel
from app.domain.enums import OrderStatus, UserRole
from app.domain.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.services.cart_service import CartService
from app.services.order_service import OrderService


@pytest.fixture
def seller(db, make_user):
    return make_user(db, role=UserRole.PRODUCER)


@pytest.fixture
def buyer(db, make_user):
    return make_user(db)


@pytest.fixture
def address(db, buyer, make_address):
    return make_address(db, buyer)


@pytest.fixture
def cart(db, fees) -> CartService:
    return CartService(db, fees)


@pytest.fixture
def orders(db, fees) -> OrderService:
    return OrderService(db, fees)


@pytest.fixture
def placed(cart, orders, buyer, seller, address, make_product, make_discount, db):
    """One order: 3 x 10.00 at 20% off, delivery 2.00, service 1.00."""
    product = make_product(db, seller, price="10.00")
    make_discount(db, product, "20")
    item = cart.add_item(buyer.id, product.id, 3)
    result = orders.create_order(buyer.id, [item["cart_item_id"]], address.id)
    return result["orders"][0]


class TestCreateOrder:
    def test_totals(self, placed) -> None:
        assert placed["subtotal"] == Decimal("24.00")
        assert placed["delivery_fee"] == Decimal("2.00")
        assert placed["service_fee"] == Decimal("1.00")
        assert placed["total_discount"] == Decimal("0.00")
        assert placed["total_amount"] == Decimal("27.00")
        assert placed["status"] == OrderStatus.PENDING_PAYMENT.value
        assert re.fullmatch(r"FM\d{8}[0-9A-F]{6}", placed["order_number"])

    def test_total_invariant_holds_on_stored_order(self, placed, db) -> None:
        order = db.get(OrderModel, placed["order_id"])
        assert order.total_amount == order.subtotal + order.delivery_fee + order.service_fee - order.total_discount

    def test_line_snapshot(self, placed, orders, buyer) -> None:
        item = orders.get_order(placed["order_id"], buyer.id)["items"][0]

        assert item["product_name"] == "Tomatoes"
        assert item["quantity"] == 3
        assert item["unit_price"] == Decimal("10.00")
        assert item["discount"] == Decimal("6.00")
        assert item["subtotal"] == Decimal("24.00")

    def test_converted_cart_items_are_removed(self, placed, db) -> None:
        assert db.execute(select(CartItemModel)).scalars().all() == []

    def test_one_order_per_seller(self, cart, orders, buyer, seller, address, make_user, make_product, db) -> None:
        other = make_user(db, role=UserRole.PRODUCER)
        cart.add_item(buyer.id, make_product(db, seller, price="10.00").id)
        cart.add_item(buyer.id, make_product(db, other, price="5.00").id, 2)

        # bez listy id bierze zaznaczone pozycje
        result = orders.create_order(buyer.id, None, address.id)

        assert result["payment_summary"]["total_orders"] == 2
        assert result["payment_summary"]["grand_total"] == Decimal("26.00")
        assert {o["seller_id"] for o in result["orders"]} == {seller.id, other.id}

    def test_empty_selection(self, orders, buyer, address) -> None:
        with pytest.raises(ValidationError):
            orders.create_order(buyer.id, [], address.id)

    def test_no_matching_items(self, orders, buyer, address) -> None:
        with pytest.raises(NotFoundError):
            orders.create_order(buyer.id, [999], address.id)

    def test_cannot_order_someone_elses_cart_items(self, cart, orders, buyer, seller, make_user, make_address, make_product, db) -> None:
        item = cart.add_item(buyer.id, make_product(db, seller).id)
        thief = make_user(db)
        thief_address = make_address(db, thief)

        with pytest.raises(NotFoundError):
            orders.create_order(thief.id, [item["cart_item_id"]], thief_address.id)
        assert db.get(CartItemModel, item["cart_item_id"]) is not None

    def test_address_not_found_then_forbidden(self, cart, orders, buyer, seller, make_user, make_address, make_product, db) -> None:
        item = cart.add_item(buyer.id, make_product(db, seller).id)
        foreign = make_address(db, make_user(db))

        with pytest.raises(NotFoundError):
            orders.create_order(buyer.id, [item["cart_item_id"]], 999)
        with pytest.raises(ForbiddenError):
            orders.create_order(buyer.id, [item["cart_item_id"]], foreign.id)


class TestVisibility:
    def test_buyer_and_seller_can_read(self, placed, orders, buyer, seller) -> None:
        assert orders.get_order(placed["order_id"], buyer.id)["order_number"] == placed["order_number"]
        assert orders.get_order(placed["order_id"], seller.id)["seller"]["user_id"] == seller.id

    def test_stranger_is_forbidden(self, placed, orders, make_user, db) -> None:
        with pytest.raises(ForbiddenError):
            orders.get_order(placed["order_id"], make_user(db).id)

    def test_missing_order(self, orders, buyer) -> None:
        with pytest.raises(NotFoundError):
            orders.get_order(404, buyer.id)

    def test_list_by_role(self, placed, orders, buyer, seller) -> None:
        bought, pagination = orders.list_orders(buyer.id, role="buyer")
        sold, _ = orders.list_orders(seller.id, role="seller")
        none, _ = orders.list_orders(seller.id, role="buyer")

        assert [o["order_id"] for o in bought] == [placed["order_id"]]
        assert [o["order_id"] for o in sold] == [placed["order_id"]]
        assert none == []
        assert pagination == {"current_page": 1, "total_pages": 1, "total_items": 1}


class TestCancel:
    def test_buyer_cancels_unpaid_order(self, placed, orders, buyer) -> None:
        result = orders.cancel(placed["order_id"], buyer.id, "Changed my mind", "ordered twice")

        assert result == {"order_id": placed["order_id"], "status": "CANCELLED", "refund": None}
        detail = orders.get_order(placed["order_id"], buyer.id)
        assert detail["cancelled_reason"] == "Changed my mind: ordered twice"
        assert [t["status"] for t in detail["timeline"]] == ["created", "cancelled"]

    def test_paid_order_gets_refund(self, placed, orders, seller) -> None:
        orders.set_status(placed["order_id"], OrderStatus.PAID)

        result = orders.cancel(placed["order_id"], seller.id, "Out of stock")

        assert result["refund"] == {
            "amount": Decimal("27.00"),
            "method": "bank_transfer",
            "estimated_days": 7,
        }

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED])
    def test_terminal_order_cannot_be_cancelled(self, placed, orders, buyer, db, terminal) -> None:
        orders.set_status(placed["order_id"], terminal)

        with pytest.raises(ConflictError, match="Order cannot be cancelled"):
            orders.cancel(placed["order_id"], buyer.id, "Too late")

        assert orders.get_order(placed["order_id"], buyer.id)["status"] == terminal.value

    def test_reason_required(self, placed, orders, buyer) -> None:
        with pytest.raises(ValidationError):
            orders.cancel(placed["order_id"], buyer.id, "  ")

    def test_stranger_checked_before_reason(self, placed, orders, make_user, db) -> None:
        with pytest.raises(ForbiddenError):
            orders.cancel(placed["order_id"], make_user(db).id, None)


class TestSetStatus:
    def test_paid_stamps_payment(self, placed, orders) -> None:
        result = orders.set_status(placed["order_id"], "PAID", tracking_number="TRK-1")

        assert result["status"] == "PAID"
        assert result["paid_at"] is not None
        assert result["tracking_number"] == "TRK-1"

    def test_transitions_are_not_constrained(self, placed, orders) -> None:
        orders.set_status(placed["order_id"], OrderStatus.DELIVERED)
        assert orders.set_status(placed["order_id"], OrderStatus.PROCESSING)["status"] == "PROCESSING"

    def test_unknown_status(self, placed, orders) -> None:
        with pytest.raises(ValidationError):
            orders.set_status(placed["order_id"], "LOST")

    def test_missing_order(self, orders) -> None:
        with pytest.raises(NotFoundError):
            orders.set_status(404, OrderStatus.PAID)

    def test_list_all_filters_by_status(self, placed, orders) -> None:
        pending, _ = orders.list_all(status=OrderStatus.PENDING_PAYMENT)
        shipped, pagination = orders.list_all(status="SHIPPED")

        assert len(pending) == 1
        assert shipped == []
        assert pagination["total_pages"] == 0


class TestAdvanceStatus:
    """Seller-driven moves through the order lifecycle."""

    def test_full_forward_chain(self, placed, orders, seller) -> None:
        order_id = placed["order_id"]
        orders.set_status(order_id, OrderStatus.PAID)

        assert orders.advance_status(order_id, seller.id, OrderStatus.PROCESSING)["status"] == "PROCESSING"
        shipped = orders.advance_status(order_id, seller.id, "SHIPPED", tracking_number="JNE-123")
        assert shipped["status"] == "SHIPPED"
        assert shipped["tracking_number"] == "JNE-123"
        assert orders.advance_status(order_id, seller.id, OrderStatus.DELIVERED)["status"] == "DELIVERED"

    @pytest.mark.parametrize(
        ("start", "target"),
        [
            (OrderStatus.PENDING_PAYMENT, OrderStatus.PAID),
            (OrderStatus.PAID, OrderStatus.SHIPPED),
            (OrderStatus.PAID, OrderStatus.DELIVERED),
            (OrderStatus.PROCESSING, OrderStatus.PAID),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
            (OrderStatus.DELIVERED, OrderStatus.PROCESSING),
            (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
            (OrderStatus.REFUNDED, OrderStatus.DELIVERED),
        ],
    )
    def test_rejected_moves(self, placed, orders, seller, buyer, start, target) -> None:
        orders.set_status(placed["order_id"], start)

        with pytest.raises(ConflictError) as exc_info:
            orders.advance_status(placed["order_id"], seller.id, target)

        assert exc_info.value.message == f"Cannot transition from {start.value} to {target.value}"
        assert orders.get_order(placed["order_id"], buyer.id)["status"] == start.value

    @pytest.mark.parametrize("start", [OrderStatus.PENDING_PAYMENT, OrderStatus.PAID, OrderStatus.PROCESSING])
    def test_cancel_before_shipping_stamps_time(self, placed, orders, seller, buyer, start) -> None:
        orders.set_status(placed["order_id"], start)

        result = orders.advance_status(
            placed["order_id"], seller.id, OrderStatus.CANCELLED, cancelled_reason="Harvest failed"
        )

        assert result["status"] == "CANCELLED"
        assert result["cancelled_at"] is not None
        assert orders.get_order(placed["order_id"], buyer.id)["cancelled_reason"] == "Harvest failed"

    def test_tracking_number_alone(self, placed, orders, seller) -> None:
        result = orders.advance_status(placed["order_id"], seller.id, tracking_number="JNE-9")

        assert result["status"] == OrderStatus.PENDING_PAYMENT.value
        assert result["tracking_number"] == "JNE-9"

    def test_nothing_to_update(self, placed, orders, seller) -> None:
        with pytest.raises(ValidationError):
            orders.advance_status(placed["order_id"], seller.id)

    def test_missing_order_before_ownership(self, orders, buyer) -> None:
        with pytest.raises(NotFoundError):
            orders.advance_status(404, buyer.id, OrderStatus.PROCESSING)

    def test_only_the_seller_may_advance(self, placed, orders, buyer, make_user, db) -> None:
        orders.set_status(placed["order_id"], OrderStatus.PAID)
        other_seller = make_user(db, role=UserRole.PRODUCER)

        for caller in (buyer, other_seller):
            with pytest.raises(ForbiddenError):
                orders.advance_status(placed["order_id"], caller.id, OrderStatus.PROCESSING)
