from __future__ import annotations

import logging

from sqlalchemy import select

from .config import get_settings
from .constants import MEDICAL_SPECIALIZATIONS
from .db import Base, db_session, engine
from .models import AccountStatus, Role, Specialization, User
from .security import hash_password

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create the tables if they don't exist."""
    Base.metadata.create_all(bind=engine)


def seed_base() -> None:
    """
    Load the minimum data set (idempotent):
    - medical specializations
    - bootstrap admin account (HEALTHCARE_SEED_ADMIN=0 disables it)
    """
    settings = get_settings()
    with db_session() as s:
        for name, description in MEDICAL_SPECIALIZATIONS:
            if s.execute(select(Specialization).where(Specialization.name == name)).scalar_one_or_none() is None:
                s.add(Specialization(name=name, description=description))

        if settings.seed_admin:
            email = settings.admin_email.strip().lower()
            if s.execute(select(User).where(User.email == email)).scalar_one_or_none() is None:
                s.add(
                    User(
                        email=email,
                        password_hash=hash_password(settings.admin_password),
                        first_name="System",
                        last_name="Administrator",
                        role=Role.ADMIN,
                        status=AccountStatus.ACTIVE,
                        verified=True,
                    )
                )
                logger.info("bootstrap admin created: %s", email)
