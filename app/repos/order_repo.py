# app/repos/order_repo.py
from typing import Iterable, List

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session, selectinload

from app.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(
                selectinload(OrderModel.items),
                selectinload(OrderModel.seller),
                selectinload(OrderModel.delivery_address),
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def order_number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def list_orders(
        self,
        buyer_id: int | None = None,
        seller_id: int | None = None,
        status: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[List[OrderModel], int]:
        conditions = []
        if buyer_id is not None:
            conditions.append(OrderModel.buyer_id == buyer_id)
        if seller_id is not None:
            conditions.append(OrderModel.seller_id == seller_id)
        if status:
            conditions.append(OrderModel.status == status)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*conditions)
        ).scalar_one()

        orders = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .options(selectinload(OrderModel.items), selectinload(OrderModel.seller))
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(orders), total

    def update_order(
        self,
        order_id: int,
        values: dict,
        only_if_status_not_in: Iterable[str] | None = None,
        only_if_status: str | None = None,
    ) -> int:
        """
        Warunkowy update zamowienia, zwraca liczbe zmienionych wierszy.
        Z only_if_status_not_in / only_if_status dziala jak compare-and-set na statusie.
        """
        stmt = update(OrderModel).where(OrderModel.id == order_id)
        if only_if_status_not_in is not None:
            stmt = stmt.where(OrderModel.status.not_in(list(only_if_status_not_in)))
        if only_if_status is not None:
            stmt = stmt.where(OrderModel.status == only_if_status)

        result = self.db.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
