import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from stockbook.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class AccessToken:
    token: str
    expires_in: int


@dataclass(frozen=True)
class OneTimeSecret:
    """A freshly minted single-use secret.

    ``raw`` goes to the user (in an email link); only ``digest`` is stored.
    """

    token_id: str
    raw: str
    digest: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def issue_access_token(user_id: int, email: str) -> AccessToken:
    expires_in = settings.access_token_expire_minutes * 60
    claims = {
        "sub": str(user_id),
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "iss": settings.issuer,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return AccessToken(
        token=jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm),
        expires_in=expires_in,
    )


def read_access_token(token: str) -> int:
    """Return the user id an access token was issued for.

    Raises ``JWTError`` for bad signatures, expired tokens, a foreign issuer,
    or tokens that are not access tokens.
    """
    claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm], issuer=settings.issuer)
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise JWTError("not an access token")
    try:
        return int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise JWTError("malformed subject") from exc


def digest_one_time_secret(raw: str) -> str:
    return hmac.new(settings.secret_key.encode("utf-8"), raw.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_one_time_secret() -> OneTimeSecret:
    raw = secrets.token_urlsafe(48)
    return OneTimeSecret(token_id=secrets.token_urlsafe(24), raw=raw, digest=digest_one_time_secret(raw))
