from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from ..auth_service import authenticate, issue_token, register_user
from ..deps import get_current_user
from ..models import User
from ..schemas import LoginIn, RegisterIn, TokenOut
from ..user_service import get_profile

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn) -> dict[str, Any]:
    user = register_user(
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone,
        profile_data=payload.profile_data,
    )
    return {"message": "User registered successfully", "token": issue_token(user), "user": user}


@router.post("/login")
def login(payload: LoginIn) -> dict[str, Any]:
    user = authenticate(payload.email, payload.password)
    return {"message": "Login successful", "token": issue_token(user), "user": user}


@router.post("/token", response_model=TokenOut)
def token(form: OAuth2PasswordRequestForm = Depends()) -> TokenOut:
    # OAuth2 form login (x-www-form-urlencoded) for the interactive docs
    user = authenticate(form.username, form.password)
    return TokenOut(access_token=issue_token(user))


@router.post("/logout")
def logout(user: User = Depends(get_current_user)) -> dict[str, Any]:
    # tokens are stateless: the client drops its copy
    return {"message": "Logout successful"}


@router.get("/profile")
def profile(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": get_profile(user.id)}


@router.post("/refresh-token")
def refresh_token(user: User = Depends(get_current_user)) -> dict[str, Any]:
    current = get_profile(user.id)
    return {"message": "Token refreshed", "token": issue_token(current), "user": current}


@router.get("/check")
def check(user: User = Depends(get_current_user)) -> dict[str, Any]:
    return {"authenticated": True, "user": {"id": user.id, "email": user.email, "role": user.role.value}}
