"""クリニック管理者の認証まわり。

JWT を http-only Cookie ``auth_token`` に載せて管理画面の API を保護する。
ログイン失敗が続いたメールアドレスは一定時間ロックする（プロセス内メモリで管理）。
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Any, Callable

from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt

from .config import get_settings

AUTH_COOKIE_NAME = "auth_token"

security_logger = logging.getLogger("security")


def sign_token(email: str, clinic_id: str, *, now: datetime | None = None) -> str:
    """管理者用の JWT を発行する。"""

    settings = get_settings().auth
    issued = now or datetime.now(UTC)
    payload = {
        "email": email,
        "clinic_id": clinic_id,
        "iat": issued,
        "exp": issued + timedelta(hours=settings.token_expire_hours),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str | None) -> dict[str, Any] | None:
    """JWT を検証し、ペイロードを返す。無効・期限切れなら None。"""

    if not token:
        return None
    settings = get_settings().auth
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


@dataclass
class _Attempt:
    count: int = 0
    locked_until: float | None = None
    last_failure: float = 0.0


class LoginAttemptTracker:
    """ログイン失敗回数を数え、上限に達したらロックする。"""

    def __init__(
        self,
        max_attempts: int = 5,
        lockout_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._attempts: dict[str, _Attempt] = {}
        self._lock = threading.Lock()

    def _prune(self, now: float) -> None:
        # ロックが明けた記録と、ロックに至らず古くなった記録を捨てる
        stale = [
            key
            for key, attempt in self._attempts.items()
            if (attempt.locked_until is not None and now >= attempt.locked_until)
            or (attempt.locked_until is None and now - attempt.last_failure > self.lockout_seconds)
        ]
        for key in stale:
            del self._attempts[key]

    def record_failure(self, key: str) -> None:
        now = self._clock()
        with self._lock:
            self._prune(now)
            attempt = self._attempts.setdefault(key, _Attempt())
            attempt.last_failure = now
            attempt.count += 1
            if attempt.count >= self.max_attempts:
                attempt.locked_until = now + self.lockout_seconds
                security_logger.warning("login_locked key=%s attempts=%d", key, attempt.count)

    def is_locked(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            attempt = self._attempts.get(key)
            if attempt is None or attempt.locked_until is None:
                return False
            if now < attempt.locked_until:
                return True
            # ロック期間が過ぎたらリセット
            attempt.count = 0
            attempt.locked_until = None
            return False

    def clear(self, key: str) -> None:
        with self._lock:
            self._attempts.pop(key, None)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()


_auth_settings = get_settings().auth
login_attempts = LoginAttemptTracker(
    max_attempts=_auth_settings.max_login_attempts,
    lockout_seconds=_auth_settings.lockout_seconds,
)


def generate_reset_token() -> str:
    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    """再設定トークンの保存用ハッシュ（SHA-256）。"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_current_admin(request: Request) -> dict[str, Any]:
    """Cookie の JWT を検証し、ログイン中の管理者情報を返す依存関数。"""

    payload = verify_token(request.cookies.get(AUTH_COOKIE_NAME))
    if not payload or not payload.get("clinic_id"):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return payload


def require_internal_token(authorization: str | None = Header(default=None)) -> None:
    """内部 API 用の Bearer トークンを検証する依存関数。"""

    expected = get_settings().auth.internal_api_token
    if not expected:
        raise HTTPException(status_code=503, detail="internal_api_disabled")
    scheme, _, supplied = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(supplied.strip(), expected):
        security_logger.warning("internal_token_rejected")
        raise HTTPException(status_code=401, detail="Unauthorized")


__all__ = [
    "AUTH_COOKIE_NAME",
    "LoginAttemptTracker",
    "generate_reset_token",
    "get_current_admin",
    "hash_reset_token",
    "login_attempts",
    "require_internal_token",
    "sign_token",
    "verify_token",
]
