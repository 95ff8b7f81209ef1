"""
Credential service and the FastAPI dependencies guarding protected routes.

get_current_user -> 401 (AuthenticationError) on missing/invalid/expired token
require_admin    -> 403 (ForbiddenError) when the caller is not an admin
"""
from datetime import datetime, timezone, timedelta

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app import models
from app.config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRATION_DAYS
from app.database import get_db
from app.exceptions import AuthenticationError, ForbiddenError

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def create_token(user_id: str) -> str:
    payload = {
        "id": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRATION_DAYS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> str:
    """Return the user id carried by a token."""
    try:
        payload = jwt.decode(token.strip(), JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Not authorized to access this route")

    user_id = payload.get("id")
    if not user_id or not isinstance(user_id, str):
        raise AuthenticationError("Not authorized to access this route")
    return user_id


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> models.User:
    if not credentials or not credentials.credentials:
        raise AuthenticationError("Not authorized to access this route")

    user_id = decode_token(credentials.credentials)
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    return user


def require_admin(user: models.User = Depends(get_current_user)) -> models.User:
    if not user.is_admin:
        raise ForbiddenError("Not authorized as an admin")
    return user
