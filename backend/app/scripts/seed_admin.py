"""
Seed script: create tables and the admin account from the environment
Run: python -m app.scripts.seed_admin
"""
import logging
from sqlmodel import Session, select
from app.db.session import engine, init_db
from app.models.user import User, UserRole
from app.core.security import hash_password
from app.core.config import settings
from app.core.logging import setup_logging

logger = logging.getLogger(__name__)


def seed_admin(session: Session) -> User | None:
    """Create the admin user unless one with that e-mail exists"""
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD not set, skipping admin seed")
        return None

    admin_email = settings.ADMIN_EMAIL.lower()
    existing = session.exec(select(User).where(User.email == admin_email)).first()
    if existing:
        logger.info("admin already exists: %s", existing.email)
        return existing

    admin = User(
        email=admin_email,
        name=settings.ADMIN_NAME,
        password_hash=hash_password(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    logger.info("admin created: %s", admin.email)
    return admin


def main():
    setup_logging()
    logger.info("creating tables")
    init_db()
    with Session(engine) as session:
        seed_admin(session)


if __name__ == "__main__":
    main()
