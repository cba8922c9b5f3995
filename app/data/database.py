# app/data/database.py
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Database:
    """
    Jawnie tworzony klient bazy (engine + fabryka sesji).
    Tworzony w create_app i trzymany w app.state, bez globalnego engine.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {"echo": echo, "pool_pre_ping": True}

        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # baza w pamieci zyje tylko w jednym polaczeniu
            if url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool

        self.engine: Engine = create_engine(url, **kwargs)

        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        # import modeli rejestruje tabele w Base.metadata
        import app.data.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
