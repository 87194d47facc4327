"""テスト共通の設定。

アプリを import する前に一時 DB とテスト用の秘密情報を環境変数へ設定する。
"""
from pathlib import Path
import os
import sys
import tempfile

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="intake-tests-")
os.environ["INTAKE_DB"] = str(Path(_TMP_DIR) / "test.sqlite3")
os.environ["INTAKE_ENV"] = "test"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["INTERNAL_API_TOKEN"] = "test-internal-token"
os.environ["RESEND_API_KEY"] = "re_test_key"
os.environ["RESEND_FROM_EMAIL"] = "noreply@example.com"
os.environ["AUTH_COOKIE_SECURE"] = "false"
os.environ.pop("PRINTER_EMAIL", None)

# 親ディレクトリをモジュール検索パスに追加
sys.path.append(str(Path(__file__).resolve().parents[1]))

FAKE_PDF = b"%PDF-1.7\n% fake document\n"


class FakeRenderer:
    """HTML を記録して固定の PDF バイト列を返すレンダラー。"""

    def __init__(self, output: bytes = FAKE_PDF, error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.calls: list[str] = []

    def render(self, html: str) -> bytes:
        self.calls.append(html)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def fake_renderer(monkeypatch):
    from intake import main

    renderer = FakeRenderer()
    monkeypatch.setattr(main, "pdf_renderer", renderer)
    return renderer


@pytest.fixture
def sent_emails(monkeypatch):
    """resend への送信内容を記録する（外部には送らない）。"""
    import resend

    sent: list[dict] = []

    def _fake_send(params):
        sent.append(params)
        return {"id": f"email-{len(sent)}"}

    monkeypatch.setattr(resend.Emails, "send", staticmethod(_fake_send))
    return sent


@pytest.fixture
def client(fake_renderer, sent_emails):
    """テーブルを空にした状態の TestClient。"""
    from fastapi.testclient import TestClient

    from intake.auth import login_attempts
    from intake.db import get_conn
    from intake.main import app, on_startup

    on_startup()
    conn = get_conn()
    try:
        for table in ("questionnaire_responses", "clinic_settings", "password_reset_tokens"):
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
    finally:
        conn.close()
    login_attempts.reset()
    return TestClient(app)


@pytest.fixture
def clinic(client):
    """ログイン可能なクリニックを1件作成する。"""
    from intake.db import upsert_clinic_settings

    upsert_clinic_settings(
        "sakura-dental",
        printer_email="printer@example.com",
        admin_email="admin@sakura.example.com",
        admin_password="correct-horse",
    )
    return {"clinic_id": "sakura-dental", "email": "admin@sakura.example.com", "password": "correct-horse"}


@pytest.fixture
def logged_in(client, clinic):
    res = client.post("/auth/login", json={"email": clinic["email"], "password": clinic["password"]})
    assert res.status_code == 200
    return client
