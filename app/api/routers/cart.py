# app/api/routers/cart.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_fee_policy
from app.data.database import get_db
from app.domain.schemas import (
    CartItemAddedOut,
    CartItemUpdatedOut,
    CartLineOut,
    CartOut,
    CartTotalsOut,
    Envelope,
    ItemIn,
    ItemUpdateIn,
    SelectIn,
    SelectionOut,
    TokenPayload,
)
from app.services.cart_service import CartService
from app.services.pricing import FeePolicy

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db), fees: FeePolicy = Depends(get_fee_policy)) -> CartService:
    return CartService(db=db, fees=fees)


@router.get("", response_model=Envelope[CartOut])
def get_cart(user: TokenPayload = Depends(get_current_user), svc: CartService = Depends(get_service)):
    return {"status": "success", "data": svc.get_cart(user.user_id)}


@router.delete("", response_model=Envelope[CartTotalsOut])
def clear_cart(user: TokenPayload = Depends(get_current_user), svc: CartService = Depends(get_service)):
    return {"status": "success", "message": "Cart cleared successfully", "data": svc.clear(user.user_id)}


@router.get("/items", response_model=Envelope[List[CartLineOut]])
def list_items(user: TokenPayload = Depends(get_current_user), svc: CartService = Depends(get_service)):
    return {"status": "success", "data": svc.list_items(user.user_id)}


@router.post("/items", response_model=Envelope[CartItemAddedOut], status_code=201)
def add_item(
    payload: ItemIn,
    user: TokenPayload = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    data = svc.add_item(
        user_id=user.user_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
        notes=payload.notes,
    )
    return {"status": "success", "message": "Product added to cart", "data": data}


@router.put("/items/{item_id}", response_model=Envelope[CartItemUpdatedOut])
def update_item(
    item_id: int,
    payload: ItemUpdateIn,
    user: TokenPayload = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    data = svc.update_item(user.user_id, item_id, quantity=payload.quantity, notes=payload.notes)
    return {"status": "success", "message": "Cart item updated", "data": data}


@router.delete("/items/{item_id}", response_model=Envelope[CartTotalsOut])
def remove_item(
    item_id: int,
    user: TokenPayload = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    data = svc.remove_item(user.user_id, item_id)
    return {"status": "success", "message": "Item removed from cart", "data": data}


@router.patch("/items/{item_id}/select", response_model=Envelope[SelectionOut])
def select_item(
    item_id: int,
    payload: SelectIn,
    user: TokenPayload = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return {"status": "success", "data": svc.set_selected(user.user_id, item_id, payload.is_selected)}
