# app/services/token_service.py
import secrets
from datetime import datetime, timedelta

import jwt

from app.domain.enums import TokenType
from app.domain.errors import AuthError, ExpiredError
from app.domain.schemas import TokenPayload
from app.utils.clock import utcnow
from app.utils.settings import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_TTL_SECONDS,
    REFRESH_TOKEN_TTL_DAYS,
)
from app.utils.logging import get_logger

logger = get_logger(__name__)


class TokenService:
    """
    Podpisywanie i weryfikacja JWT.
    Typ tokena (access/refresh) jest w claimie "type" i zawsze sprawdzany jawnie.
    """

    def __init__(
        self,
        secret: str | None = None,
        algorithm: str | None = None,
        access_ttl: timedelta | None = None,
        refresh_ttl: timedelta | None = None,
    ):
        self.secret = secret or JWT_SECRET
        self.algorithm = algorithm or JWT_ALGORITHM
        self.access_ttl = access_ttl or timedelta(seconds=ACCESS_TOKEN_TTL_SECONDS)
        self.refresh_ttl = refresh_ttl or timedelta(days=REFRESH_TOKEN_TTL_DAYS)

    @property
    def access_expires_in(self) -> int:
        return int(self.access_ttl.total_seconds())

    def refresh_expiry(self, now: datetime | None = None) -> datetime:
        return (now or utcnow()) + self.refresh_ttl

    def _sign(self, user_id: int, role: str, token_type: TokenType, ttl: timedelta, now: datetime | None) -> str:
        issued = now or utcnow()
        payload = {
            "sub": str(user_id),
            "role": role,
            "type": token_type.value,
            "iat": issued,
            "exp": issued + ttl,
            # dwa tokeny z tej samej sekundy musza sie roznic
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def sign_access(self, user_id: int, role: str, now: datetime | None = None) -> str:
        return self._sign(user_id, role, TokenType.ACCESS, self.access_ttl, now)

    def sign_refresh(self, user_id: int, role: str, now: datetime | None = None) -> str:
        return self._sign(user_id, role, TokenType.REFRESH, self.refresh_ttl, now)

    def decode(self, token: str, verify_exp: bool = True) -> TokenPayload:
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": verify_exp, "require": ["sub", "type", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token rejected: {type(e).__name__}")
            raise AuthError("Invalid token")

        try:
            return TokenPayload(
                user_id=int(claims["sub"]),
                role=claims.get("role", ""),
                type=claims["type"],
                iat=claims.get("iat"),
                exp=claims["exp"],
            )
        except (TypeError, ValueError):
            raise AuthError("Invalid token")

    def verify_access(self, token: str) -> TokenPayload:
        payload = self.decode(token)
        if payload.type != TokenType.ACCESS.value:
            raise AuthError("Invalid token")
        return payload

    def verify_refresh(self, token: str) -> TokenPayload:
        # wygasniecie sprawdzamy na rekordzie w bazie, nie na claimie
        payload = self.decode(token, verify_exp=False)
        if payload.type != TokenType.REFRESH.value:
            raise AuthError("Invalid refresh token")
        return payload
