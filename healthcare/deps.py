from __future__ import annotations

from typing import Callable

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from .errors import AuthenticationError, PermissionDeniedError
from .models import Role, User
from .security import get_subject
from .user_service import get_user

# OAuth2 Bearer (Authorization: Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def _user_from_token(token: str) -> User:
    # strip stray blanks/quotes pasted around the token
    token = token.strip().strip('"').strip("'")

    subject = get_subject(token)
    try:
        user_id = int(subject)
    except ValueError:
        raise AuthenticationError("Invalid token")

    u = get_user(user_id)
    if u is None:
        raise AuthenticationError("User not found")
    if not u.is_active:
        raise AuthenticationError("Account is not active")
    return u


def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    return _user_from_token(token)


def get_optional_user(token: str | None = Depends(optional_oauth2_scheme)) -> User | None:
    if not token:
        return None
    return _user_from_token(token)


def require_roles(*roles: Role) -> Callable[..., User]:
    allowed = tuple(roles)
    label = " or ".join(r.value for r in allowed)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise PermissionDeniedError(f"Access denied. Required role: {label}")
        return user

    return dependency


require_patient = require_roles(Role.PATIENT)
require_doctor = require_roles(Role.DOCTOR)
require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.DOCTOR, Role.ADMIN)
