# app/repos/address_repo.py
from typing import List

from sqlalchemy import select, update, delete, case
from sqlalchemy.orm import Session

from app.data.models.address import AddressModel
from app.utils.clock import utcnow


class AddressRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_address(self, address_id: int) -> AddressModel | None:
        return self.db.execute(
            select(AddressModel)
            .where(AddressModel.id == address_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> List[AddressModel]:
        return list(
            self.db.execute(
                select(AddressModel)
                .where(AddressModel.user_id == user_id)
                .order_by(
                    AddressModel.is_primary.desc(),
                    AddressModel.created_at.desc(),
                    AddressModel.id.desc(),
                )
                .execution_options(populate_existing=True)
            ).scalars().all()
        )

    def add_address(self, address: AddressModel) -> AddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    def delete_address(self, address_id: int) -> int:
        result = self.db.execute(delete(AddressModel).where(AddressModel.id == address_id))
        return result.rowcount

    def clear_primary(self, user_id: int) -> int:
        result = self.db.execute(
            update(AddressModel)
            .where(AddressModel.user_id == user_id, AddressModel.is_primary.is_(True))
            .values(is_primary=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def make_primary(self, user_id: int, address_id: int) -> int:
        # jedno polecenie przestawia wszystkie adresy usera:
        # update addresses set is_primary = (id = :id) where user_id = :user
        result = self.db.execute(
            update(AddressModel)
            .where(AddressModel.user_id == user_id)
            .values(
                is_primary=case((AddressModel.id == address_id, True), else_=False),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def count_primary(self, user_id: int) -> int:
        return len(
            self.db.execute(
                select(AddressModel.id).where(
                    AddressModel.user_id == user_id,
                    AddressModel.is_primary.is_(True),
                )
            ).all()
        )

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
