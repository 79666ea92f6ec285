import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockbook.api.deps import get_current_user
from stockbook.core.config import settings
from stockbook.core.security import (
    digest_one_time_secret,
    hash_password,
    issue_access_token,
    issue_one_time_secret,
    verify_password,
)
from stockbook.core.timeframes import utc_now
from stockbook.db.database import get_db
from stockbook.models.security import OneTimeToken, OneTimeTokenType
from stockbook.models.user import User
from stockbook.schemas.auth import (
    GenericMessageResponse,
    LoginRequest,
    LoginResponse,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    RegisterRequest,
)
from stockbook.schemas.user import UserOut
from stockbook.services.email_service import EmailDeliveryError, build_password_reset_email, send_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def create_one_time_token(
    db: Session,
    user_id: int,
    token_type: OneTimeTokenType,
    expires_in_minutes: int,
) -> str:
    secret = issue_one_time_secret()
    db.add(
        OneTimeToken(
            id=secret.token_id,
            user_id=user_id,
            token_type=token_type,
            token_hash=secret.digest,
            expires_at=utc_now() + timedelta(minutes=expires_in_minutes),
        )
    )
    return secret.raw


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))
    if not user or not verify_password(password, user.password_hash):
        logger.warning("failed login for email=%s", email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return user


def _login_response(user: User, response: Response) -> LoginResponse:
    access = issue_access_token(user.id, user.email)
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=access.token,
        max_age=access.expires_in,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )
    return LoginResponse.from_token(
        access_token=access.token,
        expires_in=access.expires_in,
        user=UserOut.model_validate(user),
    )


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    existing = db.scalar(select(User.id).where(func.lower(User.email) == payload.email))
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        name=payload.name,
        email=payload.email,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    db.refresh(user)

    logger.info("registered user id=%s", user.id)
    return user


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = authenticate_user(db=db, email=payload.email, password=payload.password)
    return _login_response(user, response)


@router.post("/token", response_model=LoginResponse)
def login_for_access_token(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db=db, email=form_data.username, password=form_data.password)
    return _login_response(user, response)


@router.post("/logout", response_model=GenericMessageResponse)
def logout(response: Response):
    response.delete_cookie(settings.auth_cookie_name)
    return GenericMessageResponse(message="Logged out")


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=GenericMessageResponse)
def request_password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    generic = GenericMessageResponse(message="If this account exists, a reset link has been sent")
    user = db.scalar(select(User).where(func.lower(User.email) == payload.email))
    if not user:
        return generic

    reset_token = create_one_time_token(
        db=db,
        user_id=user.id,
        token_type=OneTimeTokenType.PASSWORD_RESET,
        expires_in_minutes=settings.password_reset_token_expire_minutes,
    )
    db.commit()

    try:
        send_email(build_password_reset_email(user.email, reset_token))
    except EmailDeliveryError:
        logger.exception("password reset email failed for user id=%s", user.id)

    if settings.expose_debug_tokens:
        generic.debug_token = reset_token
    return generic


@router.post("/reset-password", response_model=GenericMessageResponse)
def confirm_password_reset(payload: PasswordResetConfirmRequest, db: Session = Depends(get_db)):
    token = db.scalar(
        select(OneTimeToken).where(
            OneTimeToken.token_hash == digest_one_time_secret(payload.token),
            OneTimeToken.token_type == OneTimeTokenType.PASSWORD_RESET,
        )
    )
    now = utc_now()
    if not token or token.used_at is not None or token.expires_at < now:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired token")

    user = db.get(User, token.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.password_hash = hash_password(payload.new_password)
    token.used_at = now
    db.commit()

    logger.info("password reset for user id=%s", user.id)
    return GenericMessageResponse(message="Password reset successful")
