from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from config.settings import Settings
from core.entities.user import User
from infrastructure.db.sqlite import SQLiteUserRepository
from infrastructure.web.dependencies import get_settings, get_user_repo

# auto_error=False: свой 401 в общем формате вместо 403 от FastAPI
bearer_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# jwt авторизация: в sub лежит id пользователя
def create_access_token(settings: Settings, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(user_id), "iat": issued_at, "exp": expire}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(settings: Settings, token: str) -> int:
    """Return the user id from a valid token, ValueError otherwise."""
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise ValueError("Invalid token") from e
    return int(claims.get("sub") or "")

def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_security)) -> str:
    if credentials is None:
        raise _unauthorized("Not authenticated")
    return credentials.credentials

def get_current_user(
    token: str = Depends(get_bearer_token),
    repo: SQLiteUserRepository = Depends(get_user_repo),
    settings: Settings = Depends(get_settings),
) -> User:
    try:
        user = repo.get_by_id(decode_access_token(settings, token))
    except ValueError:
        user = None
    if user is None:
        raise _unauthorized("Could not validate credentials")
    return user

def get_current_user_id(current_user: User = Depends(get_current_user)) -> int:
    return int(current_user.id)
