# app/repos/cart_repo.py
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy import select, delete, update, func, literal, Numeric
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, selectinload, joinedload

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.product import ProductModel
from app.utils.clock import utcnow

# INSERT ... ON CONFLICT, wspierane dialekty
_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def _insert(self, model):
        dialect = self.db.get_bind().dialect.name
        try:
            return _INSERTS[dialect](model)
        except KeyError:
            raise RuntimeError(f"Upsert not supported for dialect {dialect}")

    # ---------- koszyk ----------
    def get_cart_by_user(self, user_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def get_or_create_cart(self, user_id: int) -> CartModel:
        # atomowo: dwa rownolegle requesty nie utworza dwoch koszykow
        stmt = self._insert(CartModel).values(user_id=user_id)
        stmt = stmt.on_conflict_do_nothing(index_elements=[CartModel.user_id])
        self.db.execute(stmt)
        return self.get_cart_by_user(user_id)

    def touch_cart(self, cart_id: int):
        self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id)
            .values(updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )

    # ---------- pozycje ----------
    def get_item(self, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel)
            .where(CartItemModel.id == item_id)
            .options(joinedload(CartItemModel.cart))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .options(
                    selectinload(CartItemModel.product).selectinload(ProductModel.discounts),
                    selectinload(CartItemModel.product).selectinload(ProductModel.seller),
                )
                .order_by(CartItemModel.id)
                .execution_options(populate_existing=True)
            ).scalars().all()
        )

    def upsert_item(
        self,
        cart_id: int,
        product_id: int,
        quantity: int,
        unit_price: Decimal,
        discount_price: Decimal | None,
        price: Decimal,
        notes: str | None,
    ) -> CartItemModel:
        """
        Dodaje pozycje albo zwieksza ilosc istniejacej, jednym poleceniem SQL.
        Suma ilosci liczona w bazie, wiec rownolegle dodania sie nie gubia.
        """
        now = utcnow()
        stmt = self._insert(CartItemModel).values(
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            discount_price=discount_price,
            subtotal=price * quantity,
            notes=notes,
            is_selected=True,
            added_at=now,
            updated_at=now,
        )

        merged_quantity = CartItemModel.quantity + stmt.excluded.quantity
        stmt = stmt.on_conflict_do_update(
            index_elements=[CartItemModel.cart_id, CartItemModel.product_id],
            set_={
                "quantity": merged_quantity,
                "unit_price": stmt.excluded.unit_price,
                "discount_price": stmt.excluded.discount_price,
                "subtotal": merged_quantity * literal(price, Numeric(12, 2)),
                "notes": func.coalesce(stmt.excluded.notes, CartItemModel.notes),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self.db.execute(stmt)
        return self.get_cart_item(cart_id, product_id)

    def update_item(self, item: CartItemModel, **values) -> CartItemModel:
        for key, value in values.items():
            setattr(item, key, value)
        self.db.add(item)
        self.db.flush()
        return item

    def set_selected(self, item_id: int, is_selected: bool) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.id == item_id)
            .values(is_selected=is_selected)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_item(self, item_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.id == item_id)
        )
        return result.rowcount

    def delete_items(self, item_ids: Iterable[int]) -> int:
        ids = list(item_ids)
        if not ids:
            return 0
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.id.in_(ids))
        )
        return result.rowcount

    def clear(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.cart_id == cart_id)
        )
        return result.rowcount

    # ---------- agregaty ----------
    def cart_totals(self, cart_id: int) -> tuple[int, Decimal]:
        count, total = self.db.execute(
            select(
                func.count(CartItemModel.id),
                func.coalesce(func.sum(CartItemModel.subtotal), 0),
            ).where(CartItemModel.cart_id == cart_id)
        ).one()
        return count, total

    def selected_total(self, cart_id: int) -> Decimal:
        return self.db.execute(
            select(func.coalesce(func.sum(CartItemModel.subtotal), 0)).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.is_selected.is_(True),
            )
        ).scalar_one()

    def get_items_for_checkout(self, user_id: int, item_ids: List[int] | None) -> List[CartItemModel]:
        """
        Pozycje koszyka usera do zamowienia, z blokada wierszy (FOR UPDATE).
        Bez listy id bierze zaznaczone pozycje.
        """
        stmt = (
            select(CartItemModel)
            .join(CartModel, CartModel.id == CartItemModel.cart_id)
            .where(CartModel.user_id == user_id)
        )
        if item_ids is None:
            stmt = stmt.where(CartItemModel.is_selected.is_(True))
        else:
            stmt = stmt.where(CartItemModel.id.in_(item_ids))

        stmt = (
            stmt.order_by(CartItemModel.id)
            .with_for_update(of=CartItemModel)
            .options(selectinload(CartItemModel.product))
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
