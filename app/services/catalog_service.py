# app/services/catalog_service.py
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.data.models.discount import DiscountModel
from app.data.models.product import ProductModel
from app.domain.enums import DiscountType
from app.domain.errors import ForbiddenError, NotFoundError, ValidationError
from app.repos.product_repo import ProductRepo
from app.services.pricing import ZERO, effective_price, to_money
from app.utils.clock import as_utc
from app.utils.settings import CURRENCY
from app.utils.logging import get_logger

logger = get_logger(__name__)


def discount_to_dict(discount: DiscountModel) -> Dict[str, Any]:
    return {
        "id": discount.id,
        "type": discount.type,
        "value": to_money(discount.value),
        "is_active": discount.is_active,
        "valid_from": discount.valid_from,
        "valid_until": discount.valid_until,
    }


def product_to_dict(product: ProductModel, as_of: datetime | None = None) -> Dict[str, Any]:
    pricing = effective_price(product, as_of)
    return {
        "id": product.id,
        "seller_id": product.seller_id,
        "name": product.name,
        "description": product.description,
        "price": pricing.unit_price,
        "currency": product.currency,
        "unit": product.unit,
        "stock": product.stock_quantity,
        "is_available": product.is_available,
        "image_url": product.image_url,
        "rating": product.rating,
        "discounted_price": pricing.discounted_price,
        "active_discount": discount_to_dict(pricing.discount) if pricing.discount else None,
    }


class CatalogService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product_to_dict(product)

    def create_product(
        self,
        seller_id: int,
        name: str | None,
        price: Decimal | None,
        unit: str | None,
        description: str | None = None,
        stock: int = 0,
        image_url: str | None = None,
        is_available: bool = True,
    ) -> Dict[str, Any]:
        if not name or price is None or not unit:
            raise ValidationError("Name, price, and unit are required")

        if to_money(price) <= ZERO:
            raise ValidationError("Price must be greater than 0")

        if stock < 0:
            raise ValidationError("Stock cannot be negative")

        try:
            product = self.repo.add_product(
                ProductModel(
                    seller_id=seller_id,
                    name=name,
                    description=description,
                    price=to_money(price),
                    currency=CURRENCY,
                    unit=unit,
                    stock_quantity=stock,
                    image_url=image_url,
                    is_available=is_available,
                )
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Seller {seller_id} created product {product.id}")
        return self.get_product(product.id)

    def add_discount(
        self,
        seller_id: int,
        product_id: int,
        discount_type: str,
        value: Decimal,
        valid_from: datetime,
        valid_until: datetime,
        is_active: bool = True,
    ) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")

        if product.seller_id != seller_id:
            raise ForbiddenError("Not your product")

        if isinstance(discount_type, DiscountType):
            discount_type = discount_type.value
        if discount_type not in {t.value for t in DiscountType}:
            raise ValidationError("Discount type must be 'percentage' or 'fixed'")

        value = to_money(value)
        if value <= ZERO:
            raise ValidationError("Discount value must be greater than 0")

        if discount_type == DiscountType.PERCENTAGE.value and value > Decimal("100"):
            raise ValidationError("Percentage discount cannot exceed 100")

        if as_utc(valid_from) >= as_utc(valid_until):
            raise ValidationError("valid_from must be before valid_until")

        try:
            discount = self.repo.add_discount(
                DiscountModel(
                    product_id=product.id,
                    type=discount_type,
                    value=value,
                    is_active=is_active,
                    valid_from=as_utc(valid_from),
                    valid_until=as_utc(valid_until),
                )
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Seller {seller_id} added {discount_type} discount {discount.id} to product {product.id}")
        return discount_to_dict(discount)
