"""
Admin authentication.

- Password hashing with passlib
- Signed session tokens (JWT via python-jose), valid for TOKEN_EXPIRE_DAYS
- User lookup / creation
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import JWT_SECRET, JWT_ALGORITHM, TOKEN_EXPIRE_DAYS
from app.models.user import User

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, username: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed session token for an admin."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=TOKEN_EXPIRE_DAYS))
    payload = {"sub": str(user_id), "username": username, "exp": expire}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a session token. None if invalid or expired."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, username: str, password: str, name: str = None) -> User:
    user = User(username=username, password=hash_password(password), name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created admin user {username}")
    return user


def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    """Return the user if the credentials match, else None."""
    user = get_user_by_username(db, username)
    if not user or not verify_password(password, user.password):
        return None
    return user
