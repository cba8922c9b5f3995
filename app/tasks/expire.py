# app/tasks/expire.py
from datetime import datetime

from sqlalchemy.orm import Session

from app.celery_worker import celery_app
from app.data.database import Database
from app.repos.token_repo import TokenRepo
from app.utils.clock import utcnow
from app.utils.settings import DATABASE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


def purge_expired_refresh_tokens(db: Session, now: datetime | None = None) -> int:
    """Usuwa refresh tokeny, ktorych expires_at juz minal. Zwraca liczbe usunietych."""
    repo = TokenRepo(db)
    try:
        removed = repo.delete_expired(now or utcnow())
        repo.commit()
    except Exception:
        repo.rollback()
        raise

    logger.info(f"Purged {removed} expired refresh tokens")
    return removed


@celery_app.task(name="app.tasks.expire.expire_refresh_tokens_task")
def expire_refresh_tokens_task(database_url: str | None = None) -> int:
    logger.info("Expire refresh tokens task started")

    database = Database(database_url or DATABASE_URL)
    db = database.session()
    try:
        return purge_expired_refresh_tokens(db)
    finally:
        db.close()
        database.dispose()
