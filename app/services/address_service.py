# app/services/address_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.data.models.address import AddressModel
from app.domain.errors import ForbiddenError, NotFoundError, ValidationError
from app.repos.address_repo import AddressRepo
from app.repos.user_repo import UserRepo
from app.utils.clock import utcnow
from app.utils.logging import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = ("label", "recipient_name", "phone", "full_address", "city", "postal_code")
UPDATABLE_FIELDS = ("label", "recipient_name", "phone", "full_address", "notes")


def address_to_dict(address: AddressModel) -> Dict[str, Any]:
    return {
        "address_id": address.id,
        "label": address.label,
        "recipient_name": address.recipient_name,
        "phone": address.phone,
        "full_address": address.full_address,
        "province": address.province,
        "city": address.city,
        "district": address.district,
        "postal_code": address.postal_code,
        "latitude": address.latitude,
        "longitude": address.longitude,
        "notes": address.notes,
        "is_primary": address.is_primary,
        "created_at": address.created_at,
        "updated_at": address.updated_at,
    }


class AddressService:
    """
    Adresy dostawy usera.
    Niezmiennik: najwyzej jeden adres primary na usera, rowniez przy
    rownoleglych wywolaniach set_primary.
    """

    def __init__(self, db: Session):
        self.repo = AddressRepo(db)
        self.users = UserRepo(db)

    def _owned(self, user_id: int, address_id: int) -> AddressModel:
        address = self.repo.get_address(address_id)
        if not address:
            raise NotFoundError("Address not found")
        if address.user_id != user_id:
            raise ForbiddenError("You do not have access to this address")
        return address

    def list(self, user_id: int) -> Dict[str, Any]:
        addresses = [address_to_dict(a) for a in self.repo.list_for_user(user_id)]
        return {"addresses": addresses, "total_count": len(addresses)}

    def create(self, user_id: int, **fields) -> Dict[str, Any]:
        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", {"fields": missing})

        is_primary = bool(fields.pop("is_primary", False))

        try:
            if is_primary:
                self.users.lock_user(user_id)
                self.repo.clear_primary(user_id)
            address = self.repo.add_address(
                AddressModel(user_id=user_id, is_primary=is_primary, **fields)
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"User {user_id} added address {address.id}")
        return address_to_dict(address)

    def update(self, user_id: int, address_id: int, **fields) -> Dict[str, Any]:
        address = self._owned(user_id, address_id)

        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        for name in ("label", "recipient_name", "phone", "full_address"):
            if name in changes and not str(changes[name]).strip():
                raise ValidationError(f"{name} cannot be empty")

        try:
            for key, value in changes.items():
                setattr(address, key, value)
            address.updated_at = utcnow()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return address_to_dict(address)

    def delete(self, user_id: int, address_id: int) -> None:
        address = self._owned(user_id, address_id)
        try:
            self.repo.delete_address(address.id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"User {user_id} deleted address {address_id}")

    def set_primary(self, user_id: int, address_id: int) -> Dict[str, Any]:
        self._owned(user_id, address_id)

        try:
            # blokada wiersza usera serializuje rownolegle przelaczenia
            self.users.lock_user(user_id)
            self.repo.make_primary(user_id, address_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"User {user_id} set primary address {address_id}")
        return {"address_id": address_id, "is_primary": True}
