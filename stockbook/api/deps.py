from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from stockbook.core.config import settings
from stockbook.core.security import read_access_token
from stockbook.db.database import get_db
from stockbook.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


def _clean_candidate(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = value.strip().strip("\"'").strip()
    if not cleaned:
        return None
    # Normalize accidental duplicated prefixes like: "Bearer Bearer <jwt>"
    while cleaned.lower().startswith("bearer "):
        cleaned = cleaned[7:].strip().strip("\"'").strip()
    return cleaned or None


def _extract_token(request: Request, token: str | None) -> str | None:
    raw_token = _clean_candidate(token)
    if raw_token:
        return raw_token
    raw_token = _clean_candidate(request.headers.get("x-access-token"))
    if raw_token:
        return raw_token
    # Browser downloads (PDF/XLSX links) carry the cookie set at login.
    return _clean_candidate(request.cookies.get(settings.auth_cookie_name))


def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    raw_token = _extract_token(request, token)
    if not raw_token:
        raise credentials_exception

    try:
        user_id = read_access_token(raw_token)
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.scalar(select(User).where(User.id == user_id))
    if not user:
        raise credentials_exception
    return user


def get_owner_id(current_user: User = Depends(get_current_user)) -> int:
    return current_user.id
