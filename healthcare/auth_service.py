from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select

from .constants import SELF_REGISTER_ROLES
from .db import db_session
from .errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from .models import AccountStatus, Role, User
from .security import create_access_token, hash_password, verify_password
from .serializers import profile_flat, user_flat
from .user_service import apply_role_profile

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def register_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: str = "patient",
    phone: str | None = None,
    profile_data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Self-registration for patients and doctors; the role profile is created when given."""
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationError("Email and password are required")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters long")
    if role not in SELF_REGISTER_ROLES:
        raise ValidationError("Role must be patient or doctor")

    with db_session() as s:
        exists = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if exists:
            raise ConflictError("User already exists with this email")

        u = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=(phone or "").strip() or None,
            role=Role(role),
            status=AccountStatus.ACTIVE,
            verified=False,
        )
        s.add(u)
        s.flush()

        if profile_data:
            apply_role_profile(s, u, profile_data)

        logger.info("registered %s user %s", role, u.id)
        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


def create_admin(email: str, password: str, first_name: str = "System", last_name: str = "Administrator") -> dict[str, Any]:
    email = _normalize_email(email)
    with db_session() as s:
        if s.execute(select(User).where(User.email == email)).scalar_one_or_none():
            raise ConflictError("User already exists with this email")
        u = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=Role.ADMIN,
            status=AccountStatus.ACTIVE,
            verified=True,
        )
        s.add(u)
        s.flush()
        logger.info("admin account created: %s", email)
        return user_flat(u)


def authenticate(email: str, password: str) -> dict[str, Any]:
    """Check credentials; raises with the reason the login is refused."""
    email = _normalize_email(email)
    with db_session() as s:
        u = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if u is None:
            raise ValidationError("Invalid email or password")
        if not u.password_hash:
            raise ValidationError("This account uses Google sign-in. Please log in with Google.")
        if not verify_password(password, u.password_hash):
            raise ValidationError("Invalid email or password")
        if u.status == AccountStatus.SUSPENDED:
            raise PermissionDeniedError("Account suspended. Please contact support.")
        if u.status == AccountStatus.INACTIVE:
            raise PermissionDeniedError("Account is inactive. Please contact support.")
        if u.status == AccountStatus.PENDING:
            raise PermissionDeniedError("Account pending approval. Please contact support.")
        if not u.is_active:
            raise PermissionDeniedError("Account is not active")

        logger.info("user %s logged in", u.id)
        out = user_flat(u)
        out["profile"] = profile_flat(u)
        return out


def issue_token(user: dict[str, Any]) -> str:
    return create_access_token(subject=str(user["id"]), extra={"email": user["email"], "role": user["role"]})


def reset_password(email: str, new_password: str) -> None:
    if len(new_password) < 6:
        raise ValidationError("Password must be at least 6 characters long")
    email = _normalize_email(email)
    with db_session() as s:
        u = s.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if u is None:
            raise NotFoundError("User not found")
        u.password_hash = hash_password(new_password)
        u.status = AccountStatus.ACTIVE
        logger.info("password reset for user %s", u.id)
