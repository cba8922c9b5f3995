from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.models.user import UserModel


class UserRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> UserModel | None:
        return self.db.get(UserModel, user_id)

    def get_by_email(self, email: str) -> UserModel | None:
        return self.db.execute(
            select(UserModel).where(UserModel.email == email.lower())
        ).scalar_one_or_none()

    def lock_user(self, user_id: int) -> UserModel | None:
        # SELECT ... FOR UPDATE, serializuje operacje na danych jednego usera
        return self.db.execute(
            select(UserModel).where(UserModel.id == user_id).with_for_update()
        ).scalar_one_or_none()

    def add_user(self, user: UserModel) -> UserModel:
        self.db.add(user)
        self.db.flush()
        return user

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
