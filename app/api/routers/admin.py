# app/api/routers/admin.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_fee_policy, require_role
from app.data.database import get_db
from app.domain.enums import OrderStatus, UserRole
from app.domain.schemas import Envelope, OrderListOut, StatusIn, StatusOut, TokenPayload
from app.services.order_service import OrderService
from app.services.pricing import FeePolicy

router = APIRouter(prefix="/admin", tags=["admin"])

admin = require_role(UserRole.ADMIN)


def get_service(db: Session = Depends(get_db), fees: FeePolicy = Depends(get_fee_policy)) -> OrderService:
    return OrderService(db=db, fees=fees)


@router.get("/orders", response_model=Envelope[OrderListOut])
def list_all_orders(
    status: Optional[OrderStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: TokenPayload = Depends(admin),
    svc: OrderService = Depends(get_service),
):
    orders, pagination = svc.list_all(status=status, page=page, limit=limit)
    return {"status": "success", "data": {"orders": orders}, "pagination": pagination}


@router.put("/orders/{order_id}/status", response_model=Envelope[StatusOut])
def set_order_status(
    order_id: int,
    payload: StatusIn,
    user: TokenPayload = Depends(admin),
    svc: OrderService = Depends(get_service),
):
    data = svc.set_status(order_id, payload.status, payload.tracking_number)
    return {"status": "success", "message": "Order status updated", "data": data}
