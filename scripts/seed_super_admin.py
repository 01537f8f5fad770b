#!/usr/bin/env python3
"""Seed script to create the initial super admin profile"""
import logging

from sqlalchemy.orm import Session

from voluntold.core.config import Settings
from voluntold.core.logging_config import configure_logging
from voluntold.core.security import get_password_hash
from voluntold.db.session import build_engine, build_sessionmaker
from voluntold.db.store import get_profile
from voluntold.models.user_profile import UserProfile, UserRole
from voluntold.utils.emails import require_valid_email

logger = logging.getLogger("seed_super_admin")


def seed_super_admin(db: Session, email: str, password: str) -> bool:
    """Create the global super admin record. Returns False if it already exists."""
    email = require_valid_email(email)
    if get_profile(db, email, None) is not None:
        logger.info("Super admin %s already exists", email)
        return False

    db.add(UserProfile(
        email=email,
        role=UserRole.SUPER_ADMIN,
        tenant_id=None,
        first_name="Super",
        last_name="Admin",
        password_hash=get_password_hash(password),
    ))
    db.commit()
    logger.info("Super admin created: %s (password from SUPER_ADMIN_PASSWORD)", email)
    return True


def main() -> None:
    settings = Settings()
    configure_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    engine = build_engine(settings.DATABASE_URL)
    db = build_sessionmaker(engine)()
    try:
        seed_super_admin(db, settings.SUPER_ADMIN_EMAIL, settings.SUPER_ADMIN_PASSWORD)
    except Exception:
        db.rollback()
        logger.exception("Error creating super admin")
        raise
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    main()
