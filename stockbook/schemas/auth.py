from pydantic import BaseModel, Field, field_validator

from stockbook.schemas.user import UserOut

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class _EmailNormalizer(BaseModel):
    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RegisterRequest(_EmailNormalizer):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=5, max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8, max_length=128)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("name must not be empty")
        return normalized


class LoginRequest(_EmailNormalizer):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class LoginResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    token: str
    user: UserOut

    @classmethod
    def from_token(cls, access_token: str, expires_in: int, user: UserOut) -> "LoginResponse":
        return cls(
            message="Login successful",
            access_token=access_token,
            expires_in=expires_in,
            token=access_token,
            user=user,
        )


class GenericMessageResponse(BaseModel):
    message: str
    debug_token: str | None = None


class PasswordResetRequest(_EmailNormalizer):
    email: str = Field(min_length=5, max_length=320, pattern=EMAIL_PATTERN)


class PasswordResetConfirmRequest(BaseModel):
    token: str = Field(min_length=20, max_length=512)
    new_password: str = Field(min_length=8, max_length=128)
