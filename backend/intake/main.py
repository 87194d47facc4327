"""FastAPI バックエンドのエントリポイント。

クリニックごとの問診票の受付、回答一覧・詳細、問診票 PDF の生成・取得・
プリンター送信、クリニック管理者の認証とクリニック設定の API を提供する。
"""
from __future__ import annotations
from typing import Any, Literal
from uuid import uuid4
import math
import os
import re
import sqlite3
import time
from datetime import date, datetime, timedelta, UTC
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pathlib import Path

from dotenv import load_dotenv

# .env の読み込み（リポジトリルートのみ）
_BASE_DIR = Path(__file__).resolve().parents[1]
_PROJECT_ROOT = _BASE_DIR.parent
load_dotenv(_PROJECT_ROOT / ".env")

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
import logging
from logging.handlers import RotatingFileHandler

from .auth import (
    AUTH_COOKIE_NAME,
    generate_reset_token,
    get_current_admin,
    hash_reset_token,
    login_attempts,
    require_internal_token,
    sign_token,
)
from .config import get_settings
from .db import (
    DEFAULT_DB_PATH,
    count_responses_since,
    delete_clinic_settings,
    find_valid_reset_token,
    get_clinic_by_admin_email,
    get_clinic_settings,
    get_conn,
    get_form_template,
    get_response,
    init_db,
    list_responses,
    mark_pdf_generating,
    mark_reset_token_used,
    record_pdf_error,
    save_pdf,
    save_reset_token,
    save_response,
    update_admin_password,
    upsert_clinic_settings,
    upsert_form_template,
    verify_password,
)
from .mailer import EmailDeliveryError, send_password_reset, send_questionnaire_pdf
from .pdf_renderer import PdfRenderer, RenderError, WeasyPrintRenderer, generate_pdf
from .pdf_template import DEFAULT_PDF_TEMPLATE
from .projector import coerce_int, coerce_tristate, project
from .standard_template import STANDARD_TEMPLATE_ID, STANDARD_TEMPLATE_NAME, make_standard_template
from .validator import Validator

_settings = get_settings()

SUPPORTED_LOCALES = [
    "ja", "zh", "ko", "tl", "pt", "es", "vi", "en", "th", "id",
    "km", "ne", "lo", "de", "ru", "fr", "fa", "ar", "hr", "ta",
    "si", "uk", "my", "mn",
]
DEFAULT_LOCALE = "ja"
PAGE_SIZE = 20
UNNAMED_PLACEHOLDER = "（未入力）"
MIN_PASSWORD_LENGTH = 8
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _resolve_allowed_origins() -> list[str]:
    env_value = os.getenv("FRONTEND_ALLOWED_ORIGINS", "")
    origins = [origin.strip() for origin in env_value.split(",") if origin.strip()]
    if origins:
        return origins
    if _settings.is_local:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    return []


init_db()
app = FastAPI(title="Dental Intake API")

_allowed_origins = _resolve_allowed_origins()
if _allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

logger = logging.getLogger("api")
security_logger = logging.getLogger("security")

# PDF レンダラー（テストでは差し替える）
pdf_renderer: PdfRenderer = WeasyPrintRenderer(
    timeout_seconds=_settings.pdf.render_timeout_seconds,
    base_url=_settings.pdf.base_url,
)


@app.middleware("http")
async def log_middleware(request: Request, call_next):
    """API 呼び出しとエラーを記録するミドルウェア。"""
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001 - ログ出力後に再送出
        logger.exception("api_error path=%s method=%s", request.url.path, request.method)
        raise
    duration = (time.perf_counter() - start) * 1000
    logger.info(
        "api_call path=%s method=%s status=%d duration_ms=%.1f",
        request.url.path,
        request.method,
        response.status_code,
        duration,
    )
    return response


@app.on_event("startup")
def on_startup() -> None:
    """アプリ起動時の初期化処理。DB 初期化と標準テンプレートの投入。"""
    init_db()
    # 監査ログ（security）をファイルにも出力
    try:
        log_dir = Path(__file__).resolve().parent / "logs"
        log_dir.mkdir(exist_ok=True)
        sec_log = logging.getLogger("security")
        if not any(isinstance(h, RotatingFileHandler) for h in sec_log.handlers):
            handler = RotatingFileHandler(log_dir / "security.log", maxBytes=1_000_000, backupCount=5)
            formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
            handler.setFormatter(formatter)
            sec_log.addHandler(handler)
            sec_log.setLevel(logging.INFO)
    except OSError:
        logging.getLogger(__name__).exception("failed to setup security logger")
    logging.getLogger(__name__).info("database_path=%s", DEFAULT_DB_PATH)
    # 標準テンプレートを投入（存在すれば上書き）
    upsert_form_template(
        STANDARD_TEMPLATE_ID,
        STANDARD_TEMPLATE_NAME,
        make_standard_template(),
        DEFAULT_PDF_TEMPLATE,
    )
    logging.basicConfig(level=logging.INFO)
    logging.getLogger(__name__).info("startup completed")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _clinic_tz() -> ZoneInfo:
    try:
        return ZoneInfo(_settings.clinic_timezone)
    except ZoneInfoNotFoundError:
        logger.warning("invalid_clinic_timezone value=%s", _settings.clinic_timezone)
        return ZoneInfo("Asia/Tokyo")


def _clinic_today() -> date:
    return _utcnow().astimezone(_clinic_tz()).date()


def _load_clinic_template(clinic_id: str) -> dict[str, Any] | None:
    """クリニックに割り当てられた問診テンプレートを返す（未設定なら標準）。"""
    clinic = get_clinic_settings(clinic_id)
    if not clinic:
        return None
    return get_form_template(clinic.get("template_id") or STANDARD_TEMPLATE_ID)


def _get_own_response(response_id: str, admin: dict[str, Any], *, include_pdf: bool = False) -> dict[str, Any]:
    record = get_response(response_id, include_pdf=include_pdf)
    if not record or record["clinic_id"] != admin["clinic_id"]:
        raise HTTPException(status_code=404, detail="questionnaire response not found")
    return record


# --- ヘルスチェック ---


@app.get("/health")
def health() -> dict:
    """死活監視用の簡易エンドポイント。"""
    return {"status": "ok"}


@app.get("/healthz")
def healthz() -> dict:
    """後方互換のためのエイリアス。"""
    return health()


@app.get("/readyz")
def readyz() -> dict:
    """依存疎通確認用のエンドポイント。"""
    try:
        conn = get_conn()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            conn.close()
    except sqlite3.Error as exc:
        logger.warning("readyz_db_failed error=%s", exc)
        return {"status": "not_ready", "detail": "db=False"}
    return {"status": "ready"}


@app.get("/locales")
def list_locales() -> dict:
    """問診票で選択できる言語の一覧。"""
    return {"locales": SUPPORTED_LOCALES, "default": DEFAULT_LOCALE}


# --- 問診テンプレート・回答受付 ---


@app.get("/templates")
def get_template(clinic_id: str | None = None) -> dict:
    """クリニックの問診テンプレートを返す。"""
    if not clinic_id:
        raise HTTPException(status_code=400, detail="clinic_id parameter is required")
    template = _load_clinic_template(clinic_id)
    if not template:
        raise HTTPException(status_code=404, detail="form unavailable")
    return {"template": template["questions"]}


_INT_FIELDS = ("birth_year", "birth_month", "birth_day", "pregnancy_months", "visit_year", "visit_month", "visit_day")
_BOOL_FIELDS = (
    "has_insurance",
    "has_allergy",
    "is_medicating",
    "anesthesia_trouble",
    "has_extraction",
    "is_pregnant",
    "is_lactating",
    "has_under_treatment",
    "can_bring_interpreter",
)
_LIST_FIELDS = ("symptoms", "allergy_types", "past_diseases", "treatment_preferences")


class QuestionnaireSubmission(BaseModel):
    """患者が送信する問診回答。"""

    model_config = ConfigDict(extra="ignore")

    locale: str = DEFAULT_LOCALE
    name: str = Field(min_length=1)
    sex: Literal["male", "female"]
    birth_year: int | None = None
    birth_month: int | None = Field(default=None, ge=1, le=12)
    birth_day: int | None = Field(default=None, ge=1, le=31)
    phone: str | None = None
    address: str | None = None
    has_insurance: bool | None = None
    nationality: str | None = None
    symptoms: list[str] = Field(default_factory=list)
    symptom_other: str | None = None
    has_allergy: bool | None = None
    allergy_types: list[str] = Field(default_factory=list)
    allergy_other: str | None = None
    is_medicating: bool | None = None
    medication_detail: str | None = None
    anesthesia_trouble: bool | None = None
    has_extraction: bool | None = None
    is_pregnant: bool | None = None
    pregnancy_months: int | None = Field(default=None, ge=1, le=10)
    is_lactating: bool | None = None
    past_diseases: list[str] = Field(default_factory=list)
    disease_other: str | None = None
    has_under_treatment: bool | None = None
    disease_under_treatment_detail: str | None = None
    treatment_preferences: list[str] = Field(default_factory=list)
    treatment_other: str | None = None
    can_bring_interpreter: bool | None = None
    visit_year: int | None = None
    visit_month: int | None = Field(default=None, ge=1, le=12)
    visit_day: int | None = Field(default=None, ge=1, le=31)

    @field_validator(*_INT_FIELDS, mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        return coerce_int(value)

    @field_validator(*_BOOL_FIELDS, mode="before")
    @classmethod
    def _coerce_bool(cls, value: Any) -> bool | None:
        return coerce_tristate(value)

    @field_validator(*_LIST_FIELDS, mode="before")
    @classmethod
    def _ensure_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @field_validator("birth_year")
    @classmethod
    def _check_birth_year(cls, value: int | None) -> int | None:
        if value is not None and not 1900 <= value <= date.today().year:
            raise ValueError("birth_year is out of range")
        return value

    @field_validator("visit_year")
    @classmethod
    def _check_visit_year(cls, value: int | None) -> int | None:
        if value is not None and not 2000 <= value <= date.today().year + 1:
            raise ValueError("visit_year is out of range")
        return value


@app.post("/clinics/{clinic_id}/questionnaire-responses")
def submit_questionnaire(
    clinic_id: str, payload: QuestionnaireSubmission, background: BackgroundTasks
) -> dict:
    """問診回答を保存し、PDF 生成をバックグラウンドで開始する。"""
    template = _load_clinic_template(clinic_id)
    if not template:
        raise HTTPException(status_code=404, detail="form unavailable")
    if payload.locale not in SUPPORTED_LOCALES:
        raise HTTPException(status_code=400, detail="unsupported locale")

    data = payload.model_dump(exclude={"locale"})
    missing = Validator.missing_required(template["questions"], data)
    if missing:
        raise HTTPException(status_code=400, detail=f"必須項目が未入力です: {', '.join(missing)}")
    Validator.validate_options(template["questions"], data)

    # 来院日が欠けていれば受付日（クリニックのタイムゾーン）で補う
    today = _clinic_today()
    data["visit_year"] = data.get("visit_year") or today.year
    data["visit_month"] = data.get("visit_month") or today.month
    data["visit_day"] = data.get("visit_day") or today.day

    response_id = str(uuid4())
    save_response(response_id, clinic_id, payload.locale, data, created_at=_utcnow().isoformat())
    mark_pdf_generating(response_id, True)
    background.add_task(_generate_pdf_in_background, response_id)
    logger.info("questionnaire_submitted id=%s clinic_id=%s locale=%s", response_id, clinic_id, payload.locale)
    return {"id": response_id, "message": "Questionnaire saved successfully"}


# --- PDF 生成 ---


def _generate_and_store_pdf(record: dict[str, Any]) -> bytes:
    """回答から PDF を生成して保存する。失敗時は原因を記録して RenderError を送出する。"""
    response_id = record["id"]
    template = _load_clinic_template(record["clinic_id"])
    questions = template["questions"] if template else None
    html = (template or {}).get("pdf_template_html") or DEFAULT_PDF_TEMPLATE
    data = project(record, questions, today=_clinic_today())
    mark_pdf_generating(response_id, True)
    try:
        pdf_bytes = generate_pdf(html, data, pdf_renderer)
    except RenderError as exc:
        record_pdf_error(response_id, exc.cause)
        logger.error("pdf_generation_failed id=%s cause=%s", response_id, exc.cause)
        raise
    save_pdf(response_id, pdf_bytes)
    logger.info("pdf_generated id=%s bytes=%d", response_id, len(pdf_bytes))
    return pdf_bytes


def _generate_pdf_in_background(response_id: str) -> None:
    record = get_response(response_id)
    if not record:
        logger.warning("pdf_generation_skipped id=%s reason=not_found", response_id)
        return
    try:
        _generate_and_store_pdf(record)
    except RenderError:
        # 失敗原因は pdf_error に記録済み。GET /pdf/{id} で再試行される
        return


def _render_failed_response(exc: RenderError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"error": "pdf_render_failed", "cause": exc.cause})


def _pdf_response(response_id: str, pdf_bytes: bytes) -> Response:
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="questionnaire-{response_id}.pdf"'},
    )


@app.get("/pdf/{response_id}")
def get_pdf(response_id: str, admin: dict = Depends(get_current_admin)) -> Response:
    """保存済み PDF を返す。未生成なら生成中は 202、それ以外はその場で生成する。"""
    record = _get_own_response(response_id, admin, include_pdf=True)
    if record.get("pdf_blob"):
        return _pdf_response(response_id, record["pdf_blob"])
    if record["pdf_generating"]:
        return JSONResponse(status_code=202, content={"status": "generating"})
    try:
        pdf_bytes = _generate_and_store_pdf(record)
    except RenderError as exc:
        return _render_failed_response(exc)
    return _pdf_response(response_id, pdf_bytes)


@app.post("/pdf/generate/{response_id}", dependencies=[Depends(require_internal_token)])
def regenerate_pdf(response_id: str) -> Response:
    """内部用: PDF を（再）生成して保存する。"""
    record = get_response(response_id)
    if not record:
        raise HTTPException(status_code=404, detail="questionnaire response not found")
    try:
        pdf_bytes = _generate_and_store_pdf(record)
    except RenderError as exc:
        return _render_failed_response(exc)
    return JSONResponse(content={"id": response_id, "status": "generated", "bytes": len(pdf_bytes)})


@app.post("/print/{response_id}")
def print_questionnaire(response_id: str, admin: dict = Depends(get_current_admin)) -> Response:
    """問診票 PDF をクリニックのプリンター宛てにメール送信する。"""
    record = _get_own_response(response_id, admin, include_pdf=True)
    clinic = get_clinic_settings(admin["clinic_id"]) or {}
    printer_email = clinic.get("printer_email") or _settings.email.default_printer_email
    if not printer_email:
        raise HTTPException(status_code=400, detail="printer_email_not_configured")
    if not get_settings().email.enabled:
        raise HTTPException(status_code=503, detail="email_not_configured")

    pdf_bytes = record.get("pdf_blob")
    if not pdf_bytes:
        try:
            pdf_bytes = _generate_and_store_pdf(record)
        except RenderError as exc:
            return _render_failed_response(exc)
    try:
        message_id = send_questionnaire_pdf(printer_email, response_id, pdf_bytes)
    except EmailDeliveryError as exc:
        raise HTTPException(status_code=502, detail="email_delivery_failed") from exc
    return JSONResponse(content={"status": "ok", "message_id": message_id})


# --- 問診回答の閲覧（管理者） ---


@app.get("/questionnaire-responses/list")
def list_questionnaire_responses(
    page: int = Query(default=1, ge=1), admin: dict = Depends(get_current_admin)
) -> dict:
    """ログイン中のクリニックの回答一覧（新しい順、20件ずつ）。"""
    items, total = list_responses(admin["clinic_id"], limit=PAGE_SIZE, offset=(page - 1) * PAGE_SIZE)
    return {
        "questionnaires": [
            {
                "id": it["id"],
                "clinic_id": it["clinic_id"],
                "locale": it["locale"],
                "name": (it["data"] or {}).get("name") or UNNAMED_PLACEHOLDER,
                "created_at": it["created_at"],
                "has_pdf": it["has_pdf"],
                "pdf_generating": it["pdf_generating"],
            }
            for it in items
        ],
        "pagination": {
            "page": page,
            "pageSize": PAGE_SIZE,
            "total": total,
            "totalPages": math.ceil(total / PAGE_SIZE),
        },
    }


@app.get("/questionnaire-responses/stats")
def questionnaire_stats(admin: dict = Depends(get_current_admin)) -> dict:
    """回答件数の集計（全体・今日・直近7日・今月）。日付の区切りはクリニックの現地時刻。"""
    clinic_id = admin["clinic_id"]
    local_now = _utcnow().astimezone(_clinic_tz())
    today_start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = today_start - timedelta(days=7)
    month_start = today_start.replace(day=1)

    def _since(moment: datetime) -> int:
        return count_responses_since(clinic_id, moment.astimezone(UTC).isoformat())

    return {
        "total": count_responses_since(clinic_id),
        "today": _since(today_start),
        "thisWeek": _since(week_start),
        "thisMonth": _since(month_start),
    }


@app.get("/questionnaire-responses/{response_id}")
def get_questionnaire_response(response_id: str, admin: dict = Depends(get_current_admin)) -> dict:
    """回答の詳細。表示用にラベル解決済みの値も返す。"""
    record = _get_own_response(response_id, admin)
    template = _load_clinic_template(record["clinic_id"])
    record["display"] = project(record, template["questions"] if template else None, today=_clinic_today())
    return record


# --- 管理者認証 ---


class LoginRequest(BaseModel):
    """管理者ログインリクエスト。"""
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    """パスワード再設定メールの送信要求。"""
    email: str


class PasswordResetVerify(BaseModel):
    token: str


class PasswordResetComplete(BaseModel):
    """パスワード再設定の確定。"""
    token: str
    new_password: str
    confirm_password: str


@app.post("/auth/login")
def login(payload: LoginRequest, response: Response) -> dict:
    """メールアドレスとパスワードで認証し、JWT を Cookie に設定する。"""
    email = payload.email.strip()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    if login_attempts.is_locked(email):
        security_logger.warning("login_rejected_locked email=%s", email)
        raise HTTPException(status_code=429, detail="Account is temporarily locked. Please try again later.")

    clinic = get_clinic_by_admin_email(email)
    if not clinic or not verify_password(payload.password, clinic.get("admin_password_hash")):
        login_attempts.record_failure(email)
        security_logger.info("login_failed email=%s", email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    login_attempts.clear(email)
    token = sign_token(email, clinic["clinic_id"])
    auth_cfg = get_settings().auth
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=auth_cfg.cookie_secure,
        samesite="lax",
        max_age=auth_cfg.token_expire_hours * 60 * 60,
        path="/",
    )
    security_logger.info("login_success clinic_id=%s", clinic["clinic_id"])
    return {"message": "Login successful", "email": email, "clinic_id": clinic["clinic_id"]}


@app.post("/auth/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(AUTH_COOKIE_NAME, path="/")
    return {"message": "Logged out"}


_RESET_REQUEST_MESSAGE = "If the email exists, a password reset link has been sent."


@app.post("/auth/password-reset/request")
def request_password_reset(payload: PasswordResetRequest) -> dict:
    """再設定リンクをメールで送る。アドレスの存在有無は応答から判別できない。"""
    email = payload.email.strip()
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    clinic = get_clinic_by_admin_email(email)
    if not clinic:
        security_logger.info("password_reset_request_unknown_email")
        return {"message": _RESET_REQUEST_MESSAGE}

    ttl = get_settings().auth.reset_token_ttl_minutes
    token = generate_reset_token()
    expires_at = (_utcnow() + timedelta(minutes=ttl)).isoformat()
    save_reset_token(clinic["clinic_id"], hash_reset_token(token), expires_at)
    security_logger.warning("password_reset_token_issued clinic_id=%s exp_minutes=%s", clinic["clinic_id"], ttl)

    reset_url = f"{_settings.app_url}/admin/reset-password?token={token}"
    try:
        send_password_reset(email, reset_url, ttl)
    except EmailDeliveryError:
        # 応答内容でアドレスの存在が分からないよう、送信失敗はログのみに残す
        logger.exception("password_reset_email_failed clinic_id=%s", clinic["clinic_id"])
    return {"message": _RESET_REQUEST_MESSAGE}


@app.post("/auth/password-reset/verify")
def verify_password_reset(payload: PasswordResetVerify) -> dict:
    record = find_valid_reset_token(hash_reset_token(payload.token), _utcnow().isoformat())
    if not record:
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    return {"valid": True, "clinic_id": record["clinic_id"]}


@app.post("/auth/password-reset/complete")
def complete_password_reset(payload: PasswordResetComplete) -> dict:
    """トークンを検証してパスワードを更新する。トークンは一度だけ使える。"""
    if payload.new_password != payload.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if len(payload.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters long")
    record = find_valid_reset_token(hash_reset_token(payload.token), _utcnow().isoformat())
    if not record:
        security_logger.info("password_reset_invalid_token")
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    update_admin_password(record["clinic_id"], payload.new_password)
    mark_reset_token_used(record["id"])
    security_logger.warning("password_reset_confirmed clinic_id=%s", record["clinic_id"])
    return {"message": "Password reset successfully"}


# --- クリニック設定 ---


class ClinicSettingsUpdate(BaseModel):
    """クリニック設定の更新内容。未指定の項目は変更しない。"""
    clinic_id: str | None = None
    printer_email: str | None = None
    admin_email: str | None = None
    admin_password: str | None = None


def _public_clinic_settings(row: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in row.items() if k != "admin_password_hash"}


@app.get("/clinic-settings")
def read_clinic_settings(clinic_id: str | None = None) -> dict:
    if not clinic_id:
        raise HTTPException(status_code=400, detail="clinic_id parameter is required")
    setting = get_clinic_settings(clinic_id)
    return {
        "clinic_id": clinic_id,
        "printer_email": (setting or {}).get("printer_email"),
        "admin_email": (setting or {}).get("admin_email"),
        "exists": setting is not None,
    }


@app.post("/clinic-settings")
def save_clinic_settings(payload: ClinicSettingsUpdate, admin: dict = Depends(get_current_admin)) -> dict:
    """ログイン中のクリニックの設定を作成・更新する。"""
    if payload.clinic_id and payload.clinic_id != admin["clinic_id"]:
        raise HTTPException(status_code=403, detail="You can only update your own clinic settings")
    if payload.printer_email is not None and not EMAIL_RE.match(payload.printer_email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    if payload.admin_email is not None and not EMAIL_RE.match(payload.admin_email):
        raise HTTPException(status_code=400, detail="Invalid admin email format")
    if payload.admin_password is not None and len(payload.admin_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 8 characters long")
    try:
        row = upsert_clinic_settings(
            admin["clinic_id"],
            printer_email=payload.printer_email,
            admin_email=payload.admin_email,
            admin_password=payload.admin_password,
        )
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=409, detail="admin email is already in use") from exc
    logger.info("clinic_settings_saved clinic_id=%s", admin["clinic_id"])
    return {
        "success": True,
        "message": "Clinic settings saved successfully",
        "data": _public_clinic_settings(row),
    }


@app.delete("/clinic-settings")
def remove_clinic_settings(clinic_id: str | None = None, admin: dict = Depends(get_current_admin)) -> dict:
    if not clinic_id or clinic_id != admin["clinic_id"]:
        raise HTTPException(status_code=403, detail="You can only delete your own clinic settings")
    if not delete_clinic_settings(clinic_id):
        raise HTTPException(status_code=404, detail="clinic settings not found")
    security_logger.warning("clinic_settings_deleted clinic_id=%s", clinic_id)
    return {"success": True, "message": "Clinic settings deleted successfully"}
