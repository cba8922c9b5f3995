# app/repos/token_repo.py
from datetime import datetime

from sqlalchemy import select, delete, update
from sqlalchemy.orm import Session

from app.data.models.refresh_token import RefreshTokenModel


class TokenRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_token(self, token: str) -> RefreshTokenModel | None:
        return self.db.execute(
            select(RefreshTokenModel).where(RefreshTokenModel.token == token)
        ).scalar_one_or_none()

    def add_token(self, user_id: int, token: str, expires_at: datetime) -> RefreshTokenModel:
        record = RefreshTokenModel(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(record)
        self.db.flush()
        return record

    def delete_for_user(self, user_id: int) -> int:
        result = self.db.execute(
            delete(RefreshTokenModel).where(RefreshTokenModel.user_id == user_id)
        )
        return result.rowcount

    def delete_token(self, token_id: int) -> int:
        result = self.db.execute(
            delete(RefreshTokenModel).where(RefreshTokenModel.id == token_id)
        )
        return result.rowcount

    def delete_expired(self, now: datetime) -> int:
        result = self.db.execute(
            delete(RefreshTokenModel).where(RefreshTokenModel.expires_at < now)
        )
        return result.rowcount

    def rotate(self, token_id: int, old_token: str, new_token: str, expires_at: datetime) -> int:
        # warunek na stara wartosc, tylko jedna rotacja moze wygrac
        # update refresh_tokens set token = :new where id = :id and token = :old
        result = self.db.execute(
            update(RefreshTokenModel)
            .where(
                RefreshTokenModel.id == token_id,
                RefreshTokenModel.token == old_token,
            )
            .values(token=new_token, expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
