"""
Admin authentication endpoints.

Flow:
1. POST /auth/login with username + password -> sets the auth cookie
2. Mutating endpoints read the cookie (or a Bearer header)
3. POST /auth/logout clears the cookie
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from typing import Optional

from app.config import AUTH_COOKIE_NAME, COOKIE_SECURE, TOKEN_EXPIRE_DAYS
from app.database import get_db
from app.models.user import User
from app.services import auth_service
from app.api.v1.deps import get_current_user


# Request / Response Models
class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    class Config:
        extra = "forbid"


class UserResponse(BaseModel):
    id: int
    username: str
    name: Optional[str] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    success: bool
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """
    Sign in an admin.

    Sets an HttpOnly session cookie valid for 7 days and also returns
    the token for clients that prefer the Authorization header.
    """
    user = auth_service.authenticate_user(db, data.username, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = auth_service.create_access_token(user.id, user.username)
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        max_age=60 * 60 * 24 * TOKEN_EXPIRE_DAYS,
        path="/",
    )

    return LoginResponse(
        success=True,
        user=UserResponse.model_validate(user),
        access_token=token
    )


@router.post("/logout")
def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    """The signed-in admin."""
    return user
