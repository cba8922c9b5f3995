# app/services/auth_service.py
from typing import Any, Dict

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.user import UserModel
from app.domain.errors import AuthError, ConflictError, ExpiredError, ForbiddenError, NotFoundError, ValidationError
from app.domain.schemas import TokenPayload
from app.repos.token_repo import TokenRepo
from app.repos.user_repo import UserRepo
from app.services.token_service import TokenService
from app.utils.clock import as_utc, utcnow
from app.utils.settings import BCRYPT_ROUNDS
from app.utils.logging import get_logger

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def require_role(payload: TokenPayload, role: str) -> TokenPayload:
    """Jedno miejsce sprawdzania roli, uzywane przez wszystkie routery."""
    if payload.role != role:
        raise ForbiddenError(f"{role.capitalize()} access required")
    return payload


def user_to_dict(user: UserModel) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "phone_number": user.phone_number,
        "avatar_url": user.avatar_url,
        "role": user.role,
        "is_verified": user.is_verified,
        "is_online": user.is_online,
        "last_seen": user.last_seen,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class AuthService:
    """
    Rejestracja, logowanie, rotacja refresh tokenow, wylogowanie.
    Refresh tokeny sa trzymane w bazie, zeby serwer mogl je uniewaznic.
    """

    def __init__(self, db: Session, tokens: TokenService | None = None):
        self.users = UserRepo(db)
        self.refresh_tokens = TokenRepo(db)
        self.tokens = tokens or TokenService()

    def _issue(self, user: UserModel) -> Dict[str, Any]:
        access_token = self.tokens.sign_access(user.id, user.role)
        refresh_token = self.tokens.sign_refresh(user.id, user.role)
        self.refresh_tokens.add_token(user.id, refresh_token, self.tokens.refresh_expiry())
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "Bearer",
            "expires_in": self.tokens.access_expires_in,
        }

    def register(self, email: str | None, password: str | None, name: str | None, phone_number: str | None = None) -> Dict[str, Any]:
        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Password must be at least 8 characters long")

        email = email.strip().lower()
        if self.users.get_by_email(email):
            raise ConflictError("Email already registered")

        try:
            user = self.users.add_user(
                UserModel(
                    email=email,
                    password_hash=hash_password(password),
                    name=name,
                    phone_number=phone_number or None,
                )
            )
            tokens = self._issue(user)
            self.users.commit()
        except IntegrityError:
            # rownolegla rejestracja tego samego emaila, unikalny indeks rozstrzyga
            self.users.rollback()
            logger.warning(f"Duplicate registration for {email} rejected by unique index")
            raise ConflictError("Email already registered")
        except Exception:
            self.users.rollback()
            raise

        logger.info(f"Registered user {user.id}")
        return {"user": user_to_dict(user), **tokens}

    def login(self, email: str | None, password: str | None) -> Dict[str, Any]:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.users.get_by_email(email.strip())

        if user is None:
            # ten sam koszt co prawdziwa weryfikacja, bez enumeracji kont
            pwd_context.dummy_verify()
            logger.warning("Login failed: unknown account")
            raise AuthError("Invalid credentials")

        if not verify_password(password, user.password_hash):
            logger.warning(f"Login failed for user {user.id}")
            raise AuthError("Invalid credentials")

        try:
            # jedna sesja na logowanie: stare refresh tokeny ida do kosza
            self.refresh_tokens.delete_for_user(user.id)
            tokens = self._issue(user)
            user.is_online = True
            user.last_seen = utcnow()
            self.users.commit()
        except Exception:
            self.users.rollback()
            raise

        logger.info(f"User {user.id} logged in")
        return {"user": user_to_dict(user), **tokens}

    def refresh(self, refresh_token: str | None) -> Dict[str, Any]:
        if not refresh_token:
            raise ValidationError("Refresh token is required")

        stored = self.refresh_tokens.get_by_token(refresh_token)
        if stored is None:
            raise AuthError("Refresh token not found")

        self.tokens.verify_refresh(refresh_token)

        if as_utc(stored.expires_at) < utcnow():
            self.refresh_tokens.delete_token(stored.id)
            self.refresh_tokens.commit()
            logger.info(f"Removed expired refresh token of user {stored.user_id}")
            raise ExpiredError("Refresh token expired")

        user = self.users.get_user(stored.user_id)
        if user is None:
            raise AuthError("Refresh token not found")

        access_token = self.tokens.sign_access(user.id, user.role)
        new_refresh = self.tokens.sign_refresh(user.id, user.role)

        rowcount = self.refresh_tokens.rotate(
            token_id=stored.id,
            old_token=refresh_token,
            new_token=new_refresh,
            expires_at=self.tokens.refresh_expiry(),
        )

        # ktos juz zrotowal ten token
        if rowcount == 0:
            self.refresh_tokens.rollback()
            raise AuthError("Refresh token not found")

        self.refresh_tokens.commit()

        logger.info(f"Rotated refresh token of user {user.id}")
        return {
            "access_token": access_token,
            "refresh_token": new_refresh,
            "token_type": "Bearer",
            "expires_in": self.tokens.access_expires_in,
        }

    def verify_access(self, token: str) -> TokenPayload:
        return self.tokens.verify_access(token)

    def logout(self, user_id: int) -> None:
        try:
            self.refresh_tokens.delete_for_user(user_id)
            user = self.users.get_user(user_id)
            if user is not None:
                user.is_online = False
                user.last_seen = utcnow()
            self.users.commit()
        except Exception:
            self.users.rollback()
            raise

        logger.info(f"User {user_id} logged out")

    def me(self, user_id: int) -> Dict[str, Any]:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user_to_dict(user)
