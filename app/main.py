# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from app.api import api_router
from app.api.errors import register_error_handlers
from app.data.database import Base, Database
from app.services.pricing import FeePolicy
from app.services.token_service import TokenService
from app.utils.settings import DATABASE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)

_app: FastAPI | None = None


def create_app(
    database_url: str | None = None,
    tokens: TokenService | None = None,
    fees: FeePolicy | None = None,
) -> FastAPI:
    database = Database(database_url or DATABASE_URL)
    try:
        database.create_all()
    except Exception:
        logger.exception("Failed to create database tables")
        raise
    logger.info(f"Models registered in Base.metadata: {sorted(Base.metadata.tables.keys())}")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        database.dispose()

    app = FastAPI(
        title="Farm Market API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.database = database
    app.state.tokens = tokens or TokenService()
    app.state.fees = fees or FeePolicy.from_settings()

    register_error_handlers(app)
    app.include_router(api_router)

    return app


def __getattr__(name: str):
    # uvicorn app.main:app, aplikacja powstaje przy pierwszym odwolaniu a nie przy imporcie
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
