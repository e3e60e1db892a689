from __future__ import annotations

import logging

from sqlalchemy import inspect, select
from sqlalchemy.orm import Session

from academy.core.config import get_settings
from academy.core.security import get_password_hash
from academy.db.base import Base
from academy.db.session import SessionLocal, engine
import academy.models  # noqa: F401
from academy.models.user import User, UserRole

logger = logging.getLogger(__name__)


def missing_tables() -> list[str]:
    with engine.connect() as connection:
        existing = set(inspect(connection).get_table_names())
    return sorted(set(Base.metadata.tables) - existing)


def ensure_schema() -> None:
    missing = missing_tables()
    if not missing:
        return
    logger.info("Creating missing tables: %s", ", ".join(missing))
    Base.metadata.create_all(bind=engine)


def ensure_bootstrap_admin(db: Session) -> User | None:
    settings = get_settings()
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        return None

    email = settings.bootstrap_admin_email.strip().lower()
    existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing is not None:
        return existing

    admin = User(
        name=settings.bootstrap_admin_name,
        email=email,
        hashed_password=get_password_hash(settings.bootstrap_admin_password),
        role=UserRole.admin,
    )
    db.add(admin)
    db.commit()
    logger.info("Created bootstrap admin %s", email)
    return admin


def run_startup_bootstrap() -> None:
    settings = get_settings()
    if settings.create_schema_on_startup:
        ensure_schema()
    with SessionLocal() as db:
        ensure_bootstrap_admin(db)
