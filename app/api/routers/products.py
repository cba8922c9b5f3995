# app/api/routers/products.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import require_role
from app.data.database import get_db
from app.domain.enums import UserRole
from app.domain.schemas import DiscountIn, DiscountOut, Envelope, ProductIn, ProductOut, TokenPayload
from app.services.catalog_service import CatalogService

router = APIRouter(tags=["products"])

producer = require_role(UserRole.PRODUCER)


@router.get("/products/{product_id}", response_model=Envelope[ProductOut])
def get_product(product_id: int, db: Session = Depends(get_db)):
    return {"status": "success", "data": CatalogService(db).get_product(product_id)}


@router.post("/farmer/products", response_model=Envelope[ProductOut], status_code=201)
def create_product(
    payload: ProductIn,
    user: TokenPayload = Depends(producer),
    db: Session = Depends(get_db),
):
    data = CatalogService(db).create_product(
        seller_id=user.user_id,
        name=payload.name,
        price=payload.price,
        unit=payload.unit,
        description=payload.description,
        stock=payload.stock,
        image_url=payload.image_url,
        is_available=payload.is_available,
    )
    return {"status": "success", "message": "Product created successfully", "data": data}


@router.post("/farmer/products/{product_id}/discounts", response_model=Envelope[DiscountOut], status_code=201)
def add_discount(
    product_id: int,
    payload: DiscountIn,
    user: TokenPayload = Depends(producer),
    db: Session = Depends(get_db),
):
    data = CatalogService(db).add_discount(
        seller_id=user.user_id,
        product_id=product_id,
        discount_type=payload.type,
        value=payload.value,
        valid_from=payload.valid_from,
        valid_until=payload.valid_until,
        is_active=payload.is_active,
    )
    return {"status": "success", "message": "Discount added successfully", "data": data}
