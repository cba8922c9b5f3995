# app/api/routers/health.py
from fastapi import APIRouter

from app.domain.schemas import HealthOut

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health():
    return {"status": "ok"}
