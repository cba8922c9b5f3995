# app/api/routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_token_service
from app.data.database import get_db
from app.domain.schemas import AuthOut, Envelope, LoginIn, RefreshIn, RegisterIn, TokenPairOut, TokenPayload, UserOut
from app.services.auth_service import AuthService
from app.services.token_service import TokenService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_service(db: Session, tokens: TokenService) -> AuthService:
    return AuthService(db=db, tokens=tokens)


@router.post("/register", response_model=Envelope[AuthOut], status_code=201)
def register(
    payload: RegisterIn,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    data = get_service(db, tokens).register(
        email=payload.email,
        password=payload.password,
        name=payload.name,
        phone_number=payload.phone_number,
    )
    return {"status": "success", "message": "User registered successfully", "data": data}


@router.post("/login", response_model=Envelope[AuthOut])
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    data = get_service(db, tokens).login(payload.email, payload.password)
    return {"status": "success", "message": "Login successful", "data": data}


@router.post("/refresh", response_model=Envelope[TokenPairOut])
def refresh(
    payload: RefreshIn,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    data = get_service(db, tokens).refresh(payload.refresh_token)
    return {"status": "success", "data": data}


@router.post("/logout", response_model=Envelope[None])
def logout(
    user: TokenPayload = Depends(get_current_user),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    get_service(db, tokens).logout(user.user_id)
    return {"status": "success", "message": "Logged out successfully"}


@router.get("/me", response_model=Envelope[UserOut])
def me(
    user: TokenPayload = Depends(get_current_user),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    return {"status": "success", "data": get_service(db, tokens).me(user.user_id)}
