# app/api/routers/addresses.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.domain.schemas import AddressIn, AddressListOut, AddressOut, AddressUpdateIn, Envelope, PrimaryOut, TokenPayload
from app.services.address_service import AddressService

router = APIRouter(prefix="/addresses", tags=["addresses"])


def get_service(db: Session = Depends(get_db)) -> AddressService:
    return AddressService(db)


@router.get("", response_model=Envelope[AddressListOut])
def list_addresses(user: TokenPayload = Depends(get_current_user), svc: AddressService = Depends(get_service)):
    return {"status": "success", "data": svc.list(user.user_id)}


@router.post("", response_model=Envelope[AddressOut], status_code=201)
def create_address(
    payload: AddressIn,
    user: TokenPayload = Depends(get_current_user),
    svc: AddressService = Depends(get_service),
):
    data = svc.create(user.user_id, **payload.model_dump())
    return {"status": "success", "message": "Address created successfully", "data": data}


@router.put("/{address_id}", response_model=Envelope[AddressOut])
def update_address(
    address_id: int,
    payload: AddressUpdateIn,
    user: TokenPayload = Depends(get_current_user),
    svc: AddressService = Depends(get_service),
):
    data = svc.update(user.user_id, address_id, **payload.model_dump(exclude_unset=True))
    return {"status": "success", "message": "Address updated successfully", "data": data}


@router.delete("/{address_id}", response_model=Envelope[None])
def delete_address(
    address_id: int,
    user: TokenPayload = Depends(get_current_user),
    svc: AddressService = Depends(get_service),
):
    svc.delete(user.user_id, address_id)
    return {"status": "success", "message": "Address deleted successfully"}


@router.patch("/{address_id}/primary", response_model=Envelope[PrimaryOut])
def set_primary_address(
    address_id: int,
    user: TokenPayload = Depends(get_current_user),
    svc: AddressService = Depends(get_service),
):
    return {"status": "success", "message": "Primary address updated", "data": svc.set_primary(user.user_id, address_id)}
