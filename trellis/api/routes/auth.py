from datetime import timedelta
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from trellis.adapters.sqlite.repos import SQLiteUserRepo
from trellis.api.auth_utils import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    create_access_token,
    verify_password,
)
from trellis.api.deps import get_current_user, get_user_repo
from trellis.api.schemas import UserResponse, dump
from trellis.domain.entities import User

router = APIRouter()


class Token(BaseModel):
    access_token: str
    token_type: str


@router.post("/login", response_model=Token)
def login_for_access_token(
    response: Response,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> Token:
    """Authenticate user and return access token."""
    user = user_repo.get_by_email(form_data.username)
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if user.status != "active":
        raise HTTPException(status_code=400, detail="User account is inactive")

    access_token = create_access_token(
        data={"sub": str(user.id)},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )

    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=False,  # Set to True for HTTPS prod
    )

    return Token(access_token=access_token, token_type="bearer")


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return {"status": "success"}


@router.get("/me")
def read_users_me(
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Get current user info."""
    return dump(UserResponse.from_user(current_user))
