"""永続化レイヤー。

クリニック設定・問診テンプレート・問診回答・パスワード再設定トークンを
SQLite で管理する。生成済み PDF も回答レコードに保存する。
"""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, UTC
from typing import Any

from passlib.context import CryptContext

from .config import get_settings


DEFAULT_DB_PATH = get_settings().db_path

# パスワードハッシュ化のコンテキスト
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

logger = logging.getLogger(__name__)


def _dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def _now() -> str:
    return datetime.now(UTC).isoformat()


def get_conn(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = _dict_factory
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """必要なテーブル群を作成する。"""
    conn = get_conn(db_path)
    try:
        # 問診テンプレート（質問定義と PDF 用 HTML）
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS form_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                questions_json TEXT NOT NULL,
                pdf_template_html TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        # クリニック設定（クリニックIDは URL のスラッグを兼ねる）
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS clinic_settings (
                clinic_id TEXT PRIMARY KEY,
                printer_email TEXT,
                admin_email TEXT UNIQUE,
                admin_password_hash TEXT,
                template_id TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        # 問診回答
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS questionnaire_responses (
                id TEXT PRIMARY KEY,
                clinic_id TEXT NOT NULL,
                locale TEXT NOT NULL DEFAULT 'ja',
                data_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                pdf_blob BLOB,
                pdf_generating INTEGER NOT NULL DEFAULT 0,
                pdf_generated_at TEXT,
                pdf_error TEXT
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_responses_clinic_created ON questionnaire_responses(clinic_id, created_at)"
        )
        # 既存DB向けにカラムを後付け（存在時は無視）
        try:
            conn.execute("ALTER TABLE questionnaire_responses ADD COLUMN pdf_error TEXT")
        except sqlite3.OperationalError:
            pass

        # パスワード再設定トークン（ハッシュのみ保存）
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS password_reset_tokens (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                clinic_id TEXT NOT NULL,
                token_hash TEXT NOT NULL UNIQUE,
                expires_at TEXT NOT NULL,
                used INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.commit()
    finally:
        conn.close()


# --- 問診テンプレート ---


def upsert_form_template(
    template_id: str,
    name: str,
    questions: dict[str, Any],
    pdf_template_html: str | None = None,
    db_path: str = DEFAULT_DB_PATH,
) -> None:
    conn = get_conn(db_path)
    try:
        now = _now()
        conn.execute(
            """
            INSERT INTO form_templates (id, name, questions_json, pdf_template_html, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name, questions_json=excluded.questions_json,
                pdf_template_html=excluded.pdf_template_html, updated_at=excluded.updated_at
            """,
            (
                template_id,
                name,
                json.dumps(questions, ensure_ascii=False),
                pdf_template_html,
                now,
                now,
            ),
        )
        conn.commit()
    finally:
        conn.close()


def get_form_template(template_id: str, db_path: str = DEFAULT_DB_PATH) -> dict[str, Any] | None:
    conn = get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT id, name, questions_json, pdf_template_html FROM form_templates WHERE id=?",
            (template_id,),
        ).fetchone()
        if not row:
            return None
        return {
            "id": row["id"],
            "name": row["name"],
            "questions": json.loads(row["questions_json"]) or {},
            "pdf_template_html": row.get("pdf_template_html"),
        }
    finally:
        conn.close()


# --- クリニック設定 ---


def get_clinic_settings(clinic_id: str, db_path: str = DEFAULT_DB_PATH) -> dict[str, Any] | None:
    conn = get_conn(db_path)
    try:
        return conn.execute(
            "SELECT * FROM clinic_settings WHERE clinic_id = ?",
            (clinic_id,),
        ).fetchone()
    finally:
        conn.close()


def get_clinic_by_admin_email(email: str, db_path: str = DEFAULT_DB_PATH) -> dict[str, Any] | None:
    conn = get_conn(db_path)
    try:
        return conn.execute(
            "SELECT * FROM clinic_settings WHERE admin_email = ?",
            (email,),
        ).fetchone()
    finally:
        conn.close()


def upsert_clinic_settings(
    clinic_id: str,
    *,
    printer_email: str | None = None,
    admin_email: str | None = None,
    admin_password: str | None = None,
    template_id: str | None = None,
    db_path: str = DEFAULT_DB_PATH,
) -> dict[str, Any]:
    """クリニック設定を作成または更新する。

    None の引数は既存値を維持する。パスワードは bcrypt でハッシュ化して保存する。
    """
    password_hash = pwd_context.hash(admin_password) if admin_password is not None else None
    conn = get_conn(db_path)
    try:
        now = _now()
        conn.execute(
            """
            INSERT INTO clinic_settings (clinic_id, printer_email, admin_email, admin_password_hash, template_id, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(clinic_id) DO UPDATE SET
                printer_email=COALESCE(excluded.printer_email, clinic_settings.printer_email),
                admin_email=COALESCE(excluded.admin_email, clinic_settings.admin_email),
                admin_password_hash=COALESCE(excluded.admin_password_hash, clinic_settings.admin_password_hash),
                template_id=COALESCE(excluded.template_id, clinic_settings.template_id),
                updated_at=excluded.updated_at
            """,
            (clinic_id, printer_email, admin_email, password_hash, template_id, now, now),
        )
        conn.commit()
        row = conn.execute(
            "SELECT * FROM clinic_settings WHERE clinic_id = ?",
            (clinic_id,),
        ).fetchone()
    finally:
        conn.close()
    if password_hash is not None:
        logging.getLogger("security").warning("clinic_admin_password_update clinic_id=%s", clinic_id)
    return row


def delete_clinic_settings(clinic_id: str, db_path: str = DEFAULT_DB_PATH) -> bool:
    conn = get_conn(db_path)
    try:
        cur = conn.execute("DELETE FROM clinic_settings WHERE clinic_id = ?", (clinic_id,))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()


def update_admin_password(clinic_id: str, new_password: str, db_path: str = DEFAULT_DB_PATH) -> None:
    """管理者パスワードを更新する（監査ログには平文・ハッシュを出さない）。"""
    hashed_password = pwd_context.hash(new_password)
    conn = get_conn(db_path)
    try:
        conn.execute(
            "UPDATE clinic_settings SET admin_password_hash = ?, updated_at = ? WHERE clinic_id = ?",
            (hashed_password, _now(), clinic_id),
        )
        conn.commit()
    finally:
        conn.close()
    logging.getLogger("security").warning("password_update clinic_id=%s db=%s", clinic_id, db_path)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """平文パスワードとハッシュ化済みパスワードを比較する。"""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


# --- 問診回答 ---


def _row_to_response(row: dict[str, Any], *, include_pdf: bool = False) -> dict[str, Any]:
    result = {
        "id": row["id"],
        "clinic_id": row["clinic_id"],
        "locale": row.get("locale") or "ja",
        "data": json.loads(row["data_json"]) if row.get("data_json") else {},
        "created_at": row["created_at"],
        "pdf_generating": bool(row.get("pdf_generating")),
        "pdf_generated_at": row.get("pdf_generated_at"),
        "pdf_error": row.get("pdf_error"),
        "has_pdf": row.get("pdf_blob") is not None,
    }
    if include_pdf:
        blob = row.get("pdf_blob")
        result["pdf_blob"] = bytes(blob) if blob is not None else None
    return result


def save_response(
    response_id: str,
    clinic_id: str,
    locale: str,
    data: dict[str, Any],
    created_at: str | None = None,
    db_path: str = DEFAULT_DB_PATH,
) -> None:
    conn = get_conn(db_path)
    try:
        conn.execute(
            """
            INSERT INTO questionnaire_responses (id, clinic_id, locale, data_json, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                response_id,
                clinic_id,
                locale,
                json.dumps(data, ensure_ascii=False),
                created_at or _now(),
            ),
        )
        conn.commit()
    finally:
        conn.close()


def get_response(
    response_id: str, *, include_pdf: bool = False, db_path: str = DEFAULT_DB_PATH
) -> dict[str, Any] | None:
    conn = get_conn(db_path)
    try:
        row = conn.execute(
            "SELECT * FROM questionnaire_responses WHERE id = ?",
            (response_id,),
        ).fetchone()
        if not row:
            return None
        return _row_to_response(row, include_pdf=include_pdf)
    finally:
        conn.close()


def list_responses(
    clinic_id: str, *, limit: int = 20, offset: int = 0, db_path: str = DEFAULT_DB_PATH
) -> tuple[list[dict[str, Any]], int]:
    """クリニックの回答を新しい順に返す。戻り値は (行, 総件数)。"""
    conn = get_conn(db_path)
    try:
        total = conn.execute(
            "SELECT COUNT(*) AS c FROM questionnaire_responses WHERE clinic_id = ?",
            (clinic_id,),
        ).fetchone()["c"]
        rows = conn.execute(
            """
            SELECT id, clinic_id, locale, data_json, created_at, pdf_generating, pdf_generated_at, pdf_error,
                   pdf_blob IS NOT NULL AS has_pdf_blob
            FROM questionnaire_responses
            WHERE clinic_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
            """,
            (clinic_id, int(limit), int(offset)),
        ).fetchall()
        items = []
        for row in rows:
            item = _row_to_response(row)
            item["has_pdf"] = bool(row.get("has_pdf_blob"))
            items.append(item)
        return items, int(total)
    finally:
        conn.close()


def count_responses_since(clinic_id: str, since: str | None = None, db_path: str = DEFAULT_DB_PATH) -> int:
    conn = get_conn(db_path)
    try:
        if since is None:
            row = conn.execute(
                "SELECT COUNT(*) AS c FROM questionnaire_responses WHERE clinic_id = ?",
                (clinic_id,),
            ).fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) AS c FROM questionnaire_responses WHERE clinic_id = ? AND created_at >= ?",
                (clinic_id, since),
            ).fetchone()
        return int(row["c"])
    finally:
        conn.close()


def mark_pdf_generating(response_id: str, generating: bool, db_path: str = DEFAULT_DB_PATH) -> None:
    conn = get_conn(db_path)
    try:
        conn.execute(
            "UPDATE questionnaire_responses SET pdf_generating = ? WHERE id = ?",
            (1 if generating else 0, response_id),
        )
        conn.commit()
    finally:
        conn.close()


def save_pdf(response_id: str, pdf_bytes: bytes, db_path: str = DEFAULT_DB_PATH) -> None:
    conn = get_conn(db_path)
    try:
        conn.execute(
            """
            UPDATE questionnaire_responses
            SET pdf_blob = ?, pdf_generating = 0, pdf_generated_at = ?, pdf_error = NULL
            WHERE id = ?
            """,
            (sqlite3.Binary(pdf_bytes), _now(), response_id),
        )
        conn.commit()
    finally:
        conn.close()


def record_pdf_error(response_id: str, cause: str, db_path: str = DEFAULT_DB_PATH) -> None:
    conn = get_conn(db_path)
    try:
        conn.execute(
            "UPDATE questionnaire_responses SET pdf_generating = 0, pdf_error = ? WHERE id = ?",
            (cause, response_id),
        )
        conn.commit()
    finally:
        conn.close()


# --- パスワード再設定トークン ---


def save_reset_token(
    clinic_id: str, token_hash: str, expires_at: str, db_path: str = DEFAULT_DB_PATH
) -> None:
    conn = get_conn(db_path)
    try:
        conn.execute(
            """
            INSERT INTO password_reset_tokens (clinic_id, token_hash, expires_at, used, created_at)
            VALUES (?, ?, ?, 0, ?)
            """,
            (clinic_id, token_hash, expires_at, _now()),
        )
        conn.commit()
    finally:
        conn.close()


def find_valid_reset_token(
    token_hash: str, now: str | None = None, db_path: str = DEFAULT_DB_PATH
) -> dict[str, Any] | None:
    """未使用かつ有効期限内のトークンを返す。"""
    conn = get_conn(db_path)
    try:
        return conn.execute(
            """
            SELECT * FROM password_reset_tokens
            WHERE token_hash = ? AND used = 0 AND expires_at > ?
            """,
            (token_hash, now or _now()),
        ).fetchone()
    finally:
        conn.close()


def mark_reset_token_used(token_id: int, db_path: str = DEFAULT_DB_PATH) -> None:
    conn = get_conn(db_path)
    try:
        conn.execute("UPDATE password_reset_tokens SET used = 1 WHERE id = ?", (token_id,))
        conn.commit()
    finally:
        conn.close()


__all__ = [
    "DEFAULT_DB_PATH",
    "count_responses_since",
    "delete_clinic_settings",
    "find_valid_reset_token",
    "get_clinic_by_admin_email",
    "get_clinic_settings",
    "get_conn",
    "get_form_template",
    "get_response",
    "init_db",
    "list_responses",
    "mark_pdf_generating",
    "mark_reset_token_used",
    "pwd_context",
    "record_pdf_error",
    "save_pdf",
    "save_reset_token",
    "save_response",
    "update_admin_password",
    "upsert_clinic_settings",
    "upsert_form_template",
    "verify_password",
]
