from datetime import datetime
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from app.data.models.cart_item import CartItemModel
from app.domain.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.services.pricing import ZERO, FeePolicy, effective_price, to_money
from app.utils.clock import utcnow
from app.utils.logging import get_logger

logger = get_logger(__name__)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, update, remove, select, clear) modyfikuja stan
    query (get, list) tylko odczyt

    Kolejnosc bledow dla pozycji: 404 (brak pozycji) przed 403 (cudzy koszyk).
    """

    def __init__(self, db: Session, fees: FeePolicy | None = None):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.fees = fees or FeePolicy.from_settings()

    def _owned_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)

        if not item:
            raise NotFoundError("Cart item not found")

        if item.cart.user_id != user_id:
            logger.warning(f"User {user_id} tried to touch cart item {item_id} of another user")
            raise ForbiddenError("You do not have access to this cart item")

        return item

    def _line(self, item: CartItemModel, now: datetime) -> Dict[str, Any]:
        product = item.product
        current = effective_price(product, now)
        in_stock = product.is_available and product.stock_quantity > 0

        return {
            "cart_item_id": item.id,
            "product": {
                "product_id": product.id,
                "name": product.name,
                "price": current.unit_price,
                "discounted_price": current.discounted_price,
                "image": product.image_url,
                "unit": product.unit,
                "stock_quantity": product.stock_quantity,
                "seller": {"user_id": product.seller_id, "name": product.seller.name},
                "availability": "in_stock" if in_stock else "out_of_stock",
            },
            "quantity": item.quantity,
            "unit_price": to_money(item.unit_price),
            "discount_price": to_money(item.discount_price) if item.discount_price is not None else None,
            "subtotal": to_money(item.subtotal),
            "notes": item.notes,
            "is_selected": item.is_selected,
            "is_available": product.is_available,
            "added_at": item.added_at,
            "updated_at": item.updated_at,
        }

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            cart = self.repo.get_or_create_cart(user_id)
            self.repo.commit()
            logger.info(f"Created cart {cart.id} for user {user_id}")

        now = utcnow()
        lines = [self._line(i, now) for i in self.repo.get_cart_items(cart.id)]

        #grupowanie po sprzedawcy, kazdy sprzedawca to osobna dostawa
        groups: Dict[int, Dict[str, Any]] = {}
        for line in lines:
            seller = line["product"]["seller"]
            group = groups.setdefault(
                seller["user_id"],
                {"seller": seller, "items": [], "subtotal": ZERO},
            )
            group["items"].append(line)
            if line["is_selected"]:
                group["subtotal"] += line["subtotal"]

        grouped = []
        total_delivery_fee = ZERO
        for group in groups.values():
            subtotal = group["subtotal"]
            fee = self.fees.delivery_fee_for(subtotal) if subtotal > ZERO else ZERO
            total_delivery_fee += fee
            grouped.append({
                **group,
                "delivery_fee": to_money(self.fees.delivery_fee),
                "free_delivery_threshold": self.fees.free_delivery_threshold,
                "is_eligible_free_delivery": self.fees.is_free_delivery(subtotal),
                "amount_for_free_delivery": self.fees.amount_for_free_delivery(subtotal),
                "total": subtotal + fee,
            })

        selected = [line for line in lines if line["is_selected"]]
        subtotal = sum((line["subtotal"] for line in selected), ZERO)
        item_savings = sum(
            (
                (line["unit_price"] - (line["discount_price"] if line["discount_price"] is not None else line["unit_price"]))
                * line["quantity"]
                for line in selected
            ),
            ZERO,
        )
        service_fee = to_money(self.fees.service_fee) if selected else ZERO

        return {
            "cart_id": cart.id,
            "items": lines,
            "grouped_by_seller": grouped,
            "summary": {
                "total_items": len(lines),
                "total_quantity": sum(line["quantity"] for line in lines),
                "subtotal": subtotal,
                "item_savings": to_money(item_savings),
                "total_delivery_fee": total_delivery_fee,
                "service_fee": service_fee,
                "grand_total": subtotal + total_delivery_fee + service_fee,
            },
            "unavailable_items": [line["cart_item_id"] for line in lines if not line["is_available"]],
            "updated_at": cart.updated_at,
        }

    def list_items(self, user_id: int) -> List[Dict[str, Any]]:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            return []
        now = utcnow()
        return [self._line(i, now) for i in self.repo.get_cart_items(cart.id)]

    #commands
    def add_item(
        self,
        user_id: int,
        product_id: int | None,
        quantity: int = 1,
        notes: str | None = None,
    ) -> Dict[str, Any]:

        # Walidacje
        if not product_id:
            raise ValidationError("Product ID is required")

        if not _is_positive_int(quantity):
            raise ValidationError("Quantity must be a positive integer")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")

        if not product.is_available:
            raise ConflictError("Product is not available")

        # cena liczona teraz i zamrozona w pozycji koszyka
        pricing = effective_price(product)

        try:
            cart = self.repo.get_or_create_cart(user_id)

            # upsert: nowa pozycja albo suma ilosci w istniejacej
            item = self.repo.upsert_item(
                cart_id=cart.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=pricing.unit_price,
                discount_price=pricing.discounted_price,
                price=pricing.price,
                notes=notes,
            )
            self.repo.touch_cart(cart.id)
            count, total = self.repo.cart_totals(cart.id)
            self.repo.commit()

        except Exception as e:
            logger.error(f"Failed to add product {product_id} to cart of user {user_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(
            f"Product {product_id} in cart {cart.id}: quantity {item.quantity}, subtotal {to_money(item.subtotal)}"
        )

        return {
            "cart_item_id": item.id,
            "product_id": item.product_id,
            "quantity": item.quantity,
            "subtotal": to_money(item.subtotal),
            "cart_total_items": count,
            "cart_grand_total": to_money(total),
        }

    def update_item(
        self,
        user_id: int,
        item_id: int,
        quantity: int | None = None,
        notes: str | None = None,
    ) -> Dict[str, Any]:

        item = self._owned_item(user_id, item_id)

        if quantity is None and notes is None:
            raise ValidationError("Nothing to update")

        values: Dict[str, Any] = {}
        if quantity is not None:
            if not _is_positive_int(quantity):
                raise ValidationError("Quantity must be a positive integer")
            # cena zamrozona przy dodaniu, bez ponownego sprawdzania produktu
            price = item.discount_price if item.discount_price is not None else item.unit_price
            values["quantity"] = quantity
            values["subtotal"] = to_money(to_money(price) * quantity)
        if notes is not None:
            values["notes"] = notes

        try:
            self.repo.update_item(item, **values)
            self.repo.touch_cart(item.cart_id)
            _, total = self.repo.cart_totals(item.cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Updated cart item {item_id} of user {user_id}")

        return {
            "cart_item_id": item.id,
            "quantity": item.quantity,
            "subtotal": to_money(item.subtotal),
            "cart_grand_total": to_money(total),
        }

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)
        cart_id = item.cart_id

        try:
            self.repo.delete_item(item.id)
            self.repo.touch_cart(cart_id)
            count, total = self.repo.cart_totals(cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Removed cart item {item_id} of user {user_id}")

        return {
            "cart_total_items": count,
            "cart_grand_total": to_money(total),
        }

    def set_selected(self, user_id: int, item_id: int, is_selected: bool | None) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)

        if is_selected is None:
            raise ValidationError("is_selected is required")

        try:
            self.repo.set_selected(item.id, bool(is_selected))
            total = self.repo.selected_total(item.cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return {
            "cart_item_id": item.id,
            "is_selected": bool(is_selected),
            "selected_items_total": to_money(total),
        }

    def clear(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            try:
                removed = self.repo.clear(cart.id)
                self.repo.touch_cart(cart.id)
                self.repo.commit()
            except Exception:
                self.repo.rollback()
                raise
            logger.info(f"Cleared {removed} items from cart {cart.id}")

        return {"cart_total_items": 0, "cart_grand_total": ZERO}

