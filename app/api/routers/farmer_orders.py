# app/api/routers/farmer_orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_fee_policy, require_role
from app.data.database import get_db
from app.domain.enums import UserRole
from app.domain.schemas import Envelope, SellerStatusIn, StatusOut, TokenPayload
from app.services.order_service import OrderService
from app.services.pricing import FeePolicy

router = APIRouter(prefix="/farmer/orders", tags=["farmer"])

producer = require_role(UserRole.PRODUCER)


def get_service(db: Session = Depends(get_db), fees: FeePolicy = Depends(get_fee_policy)) -> OrderService:
    return OrderService(db=db, fees=fees)


@router.patch("/{order_id}", response_model=Envelope[StatusOut])
def update_order_status(
    order_id: int,
    payload: SellerStatusIn,
    user: TokenPayload = Depends(producer),
    svc: OrderService = Depends(get_service),
):
    data = svc.advance_status(
        order_id,
        user.user_id,
        status=payload.status,
        tracking_number=payload.tracking_number,
        cancelled_reason=payload.cancelled_reason,
    )
    return {"status": "success", "message": "Order updated successfully", "data": data}
