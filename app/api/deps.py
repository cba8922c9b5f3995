# app/api/deps.py
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.domain.enums import UserRole
from app.domain.errors import AuthError
from app.domain.schemas import TokenPayload
from app.services import auth_service
from app.services.pricing import FeePolicy
from app.services.token_service import TokenService

# auto_error=False: brak naglowka obslugujemy sami, zeby odpowiedz miala envelope
bearer = HTTPBearer(auto_error=False)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_fee_policy(request: Request) -> FeePolicy:
    return request.app.state.fees


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    tokens: TokenService = Depends(get_token_service),
) -> TokenPayload:
    if credentials is None or not credentials.credentials:
        raise AuthError("Unauthorized")
    return tokens.verify_access(credentials.credentials)


def require_role(role: UserRole):
    def dependency(user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
        return auth_service.require_role(user, role.value)

    return dependency
