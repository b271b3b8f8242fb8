"""
Shared FastAPI dependencies.

get_current_user guards every mutating route and every read of student data.
The session token is read from the auth cookie, or from an
"Authorization: Bearer <token>" header for API clients.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.config import AUTH_COOKIE_NAME
from app.database import get_db
from app.models.user import User
from app.services import auth_service

# Bearer token extractor (optional - the cookie is the primary carrier)
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    FastAPI dependency - the signed-in admin.

    Raises:
        HTTPException 401: no token, invalid/expired token, or unknown user
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise unauthorized

    payload = auth_service.decode_token(token)
    if not payload or not payload.get("sub"):
        raise unauthorized

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise unauthorized

    user = auth_service.get_user_by_id(db, user_id)
    if not user:
        raise unauthorized

    return user
