# app/api/routers/orders.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_fee_policy
from app.data.database import get_db
from app.domain.enums import OrderStatus
from app.domain.schemas import (
    CancelIn,
    CancelOut,
    Envelope,
    OrderCreate,
    OrderDetailOut,
    OrderListOut,
    OrdersCreatedOut,
    TokenPayload,
)
from app.services.order_service import OrderService
from app.services.pricing import FeePolicy

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db), fees: FeePolicy = Depends(get_fee_policy)) -> OrderService:
    return OrderService(db=db, fees=fees)


@router.post("", response_model=Envelope[OrdersCreatedOut], status_code=201)
def create_order(
    payload: OrderCreate,
    user: TokenPayload = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    data = svc.create_order(
        buyer_id=user.user_id,
        cart_item_ids=payload.cart_item_ids,
        delivery_address_id=payload.delivery_address_id,
        delivery_method=payload.delivery_method,
        payment_method=payload.payment_method,
        delivery_date=payload.delivery_date,
        delivery_time_slot=payload.delivery_time_slot,
        notes=payload.notes,
    )
    return {"status": "success", "message": "Order created successfully", "data": data}


@router.get("", response_model=Envelope[OrderListOut])
def list_orders(
    role: str = Query("buyer", pattern="^(buyer|seller)$"),
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: TokenPayload = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    orders, pagination = svc.list_orders(user.user_id, role=role, status=status, page=page, limit=limit)
    return {"status": "success", "data": {"orders": orders}, "pagination": pagination}


@router.get("/{order_id}", response_model=Envelope[OrderDetailOut])
def get_order(
    order_id: int,
    user: TokenPayload = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return {"status": "success", "data": svc.get_order(order_id, user.user_id)}


@router.patch("/{order_id}/cancel", response_model=Envelope[CancelOut])
def cancel_order(
    order_id: int,
    payload: CancelIn,
    user: TokenPayload = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    data = svc.cancel(order_id, user.user_id, payload.reason, payload.details)
    return {"status": "success", "message": "Order cancelled successfully", "data": data}
