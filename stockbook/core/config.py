import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    app_name: str
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    password_reset_token_expire_minutes: int
    expose_debug_tokens: bool
    issuer: str
    frontend_base_url: str
    cors_origins: tuple[str, ...]
    auth_cookie_name: str
    auth_cookie_secure: bool
    email_provider: str
    email_from: str
    sendgrid_api_key: str
    smtp_host: str
    smtp_port: int
    smtp_username: str
    smtp_password: str
    smtp_starttls: bool
    smtp_use_ssl: bool
    smtp_timeout_seconds: int
    database_url: str
    db_pool_size: int
    db_pool_recycle_seconds: int
    db_sslmode: str
    reporting_timezone: str
    log_level: str
    log_file: str
    auto_create_tables: bool


settings = Settings(
    app_name=os.getenv("APP_NAME", "Stockbook API"),
    secret_key=os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION_32_CHAR_MIN_SECRET_KEY"),
    algorithm=os.getenv("ALGORITHM", "HS256"),
    access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 24 * 60, min_value=1),
    password_reset_token_expire_minutes=_env_int("PASSWORD_RESET_TOKEN_EXPIRE_MINUTES", 15, min_value=1),
    expose_debug_tokens=_env_bool("EXPOSE_DEBUG_TOKENS", False),
    issuer=os.getenv("TOKEN_ISSUER", "stockbook-api"),
    frontend_base_url=os.getenv("FRONTEND_BASE_URL", "http://localhost:8080"),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", os.getenv("FRONTEND_BASE_URL", "http://localhost:8080")).split(",")
        if origin.strip()
    ),
    auth_cookie_name=os.getenv("AUTH_COOKIE_NAME", "access_token"),
    auth_cookie_secure=_env_bool("AUTH_COOKIE_SECURE", False),
    email_provider=os.getenv(
        "EMAIL_PROVIDER",
        "sendgrid" if os.getenv("SENDGRID_API_KEY") else ("smtp" if os.getenv("SMTP_HOST") else "console"),
    ).lower(),
    email_from=os.getenv("EMAIL_FROM", "no-reply@stockbook.local"),
    sendgrid_api_key=os.getenv("SENDGRID_API_KEY", ""),
    smtp_host=os.getenv("SMTP_HOST", ""),
    smtp_port=_env_int("SMTP_PORT", 587, min_value=1),
    smtp_username=os.getenv("SMTP_USERNAME", ""),
    smtp_password=os.getenv("SMTP_PASSWORD", ""),
    smtp_starttls=_env_bool("SMTP_STARTTLS", True),
    smtp_use_ssl=_env_bool("SMTP_USE_SSL", False),
    smtp_timeout_seconds=_env_int("SMTP_TIMEOUT_SECONDS", 15, min_value=1),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./stockbook.db"),
    db_pool_size=_env_int("DB_POOL_SIZE", 10, min_value=1),
    db_pool_recycle_seconds=_env_int("DB_POOL_RECYCLE_SECONDS", 1800, min_value=1),
    db_sslmode=os.getenv("DB_SSLMODE", "require"),
    reporting_timezone=os.getenv("REPORTING_TIMEZONE", "Asia/Kolkata"),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    log_file=os.getenv("LOG_FILE", ""),
    auto_create_tables=_env_bool("AUTO_CREATE_TABLES", False),
)
