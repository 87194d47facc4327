"""アプリケーション設定のローダー。

データベースの場所、認証用シークレット、メール送信 (Resend)、
PDF レンダリングの制限値などを環境変数から読み出す。
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os


_APP_DIR = Path(__file__).resolve().parent


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _get_float(name: str, default: float) -> float:
    value = _get_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class AuthConfig:
    jwt_secret: str
    jwt_algorithm: str
    token_expire_hours: int
    cookie_secure: bool
    internal_api_token: str | None
    reset_token_ttl_minutes: int
    max_login_attempts: int
    lockout_seconds: int


@dataclass(frozen=True)
class EmailConfig:
    api_key: str | None
    from_email: str
    default_printer_email: str | None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class PdfConfig:
    render_timeout_seconds: float
    base_url: str | None


@dataclass(frozen=True)
class Settings:
    environment: str
    db_path: str
    app_url: str
    clinic_timezone: str
    auth: AuthConfig
    email: EmailConfig
    pdf: PdfConfig

    @property
    def is_local(self) -> bool:
        return self.environment.lower() == "local"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    environment = _get_env("INTAKE_ENV", "local")
    db_path = _get_env("INTAKE_DB", str(_APP_DIR / "app.sqlite3"))
    app_url = (_get_env("APP_URL", "http://localhost:8000") or "").rstrip("/")

    auth_config = AuthConfig(
        jwt_secret=_get_env("JWT_SECRET", "change-me-in-production"),
        jwt_algorithm="HS256",
        token_expire_hours=int(os.getenv("JWT_EXPIRE_HOURS", "24")),
        cookie_secure=_get_bool("AUTH_COOKIE_SECURE", environment != "local"),
        internal_api_token=_get_env("INTERNAL_API_TOKEN"),
        reset_token_ttl_minutes=int(os.getenv("RESET_TOKEN_TTL_MINUTES", "30")),
        max_login_attempts=int(os.getenv("LOGIN_MAX_ATTEMPTS", "5")),
        lockout_seconds=int(os.getenv("LOGIN_LOCKOUT_SECONDS", "300")),
    )

    email_config = EmailConfig(
        api_key=_get_env("RESEND_API_KEY"),
        from_email=_get_env("RESEND_FROM_EMAIL", "noreply@example.com"),
        default_printer_email=_get_env("PRINTER_EMAIL"),
    )

    pdf_config = PdfConfig(
        render_timeout_seconds=_get_float("PDF_RENDER_TIMEOUT", 60.0),
        base_url=_get_env("PDF_BASE_URL"),
    )

    return Settings(
        environment=environment,
        db_path=db_path,
        app_url=app_url,
        clinic_timezone=_get_env("CLINIC_TIMEZONE", "Asia/Tokyo"),
        auth=auth_config,
        email=email_config,
        pdf=pdf_config,
    )


__all__ = ["AuthConfig", "EmailConfig", "PdfConfig", "Settings", "get_settings"]
