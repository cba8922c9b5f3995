# app/data/seed.py
from sqlalchemy.orm import Session

from app.data.database import Database
from app.data.models.user import UserModel
from app.domain.enums import UserRole
from app.repos.user_repo import UserRepo
from app.services.auth_service import hash_password
from app.utils.settings import ADMIN_EMAIL, ADMIN_NAME, ADMIN_PASSWORD, DATABASE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


def seed(
    db: Session,
    email: str | None = ADMIN_EMAIL,
    password: str | None = ADMIN_PASSWORD,
    name: str | None = ADMIN_NAME,
) -> UserModel | None:
    """Zaklada konto ADMIN, jesli jest skonfigurowane i jeszcze go nie ma."""
    if not email or not password:
        logger.info("Admin account not configured, skipping seed")
        return None

    repo = UserRepo(db)

    # not forcing: only seed if absent
    existing = repo.get_by_email(email)
    if existing:
        return existing

    try:
        admin = repo.add_user(
            UserModel(
                email=email.strip().lower(),
                password_hash=hash_password(password),
                name=name or "Administrator",
                role=UserRole.ADMIN.value,
                is_verified=True,
            )
        )
        repo.commit()
    except Exception:
        repo.rollback()
        raise

    logger.info(f"Seeded admin account {admin.id}")
    return admin


if __name__ == "__main__":
    database = Database(DATABASE_URL)
    database.create_all()
    session = database.session()
    try:
        seed(session)
    finally:
        session.close()
        database.dispose()
