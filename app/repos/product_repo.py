# app/repos/product_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.data.models.discount import DiscountModel
from app.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(selectinload(ProductModel.discounts))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def add_discount(self, discount: DiscountModel) -> DiscountModel:
        self.db.add(discount)
        self.db.flush()
        return discount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
