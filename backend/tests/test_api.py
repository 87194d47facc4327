from pathlib import Path
import sys
from datetime import datetime, UTC

sys.path.append(str(Path(__file__).resolve().parents[1]))

from conftest import FAKE_PDF  # type: ignore[import]
from intake import main  # type: ignore[import]
from intake.db import get_response, mark_pdf_generating, save_pdf, save_response  # type: ignore[import]
from intake.template_engine import EMPTY_VALUE_HTML  # type: ignore[import]


def _payload(**overrides) -> dict:
    payload = {
        "locale": "en",
        "name": "山田 花子",
        "sex": "female",
        "birth_year": "1990",
        "birth_month": "4",
        "birth_day": "1",
        "address": "<東京都>",
        "has_insurance": "true",
        "has_allergy": "なし",
        "is_medicating": "",
        "symptoms": ["toothache", "bleeding"],
        "allergy_types": "",
        "visit_year": 2026,
        "visit_month": 10,
        "visit_day": 20,
    }
    payload.update(overrides)
    return payload


def _submit(client, clinic_id: str = "sakura-dental", **overrides) -> str:
    res = client.post(f"/clinics/{clinic_id}/questionnaire-responses", json=_payload(**overrides))
    assert res.status_code == 200, res.text
    return res.json()["id"]


def test_get_template_for_clinic(client, clinic) -> None:
    """クリニックのテンプレート取得（未設定なら標準テンプレート）。"""
    res = client.get("/templates", params={"clinic_id": clinic["clinic_id"]})
    assert res.status_code == 200
    sections = res.json()["template"]["sections"]
    field_ids = {f["id"] for s in sections for f in s["fields"]}
    assert {"name", "sex", "symptoms", "can_bring_interpreter"}.issubset(field_ids)


def test_get_template_errors(client) -> None:
    assert client.get("/templates").status_code == 400
    res = client.get("/templates", params={"clinic_id": "nowhere"})
    assert res.status_code == 404
    assert res.json()["detail"] == "form unavailable"


def test_submit_stores_response_and_generates_pdf(client, clinic, fake_renderer) -> None:
    response_id = _submit(client)
    record = get_response(response_id, include_pdf=True)
    assert record["clinic_id"] == "sakura-dental"
    assert record["locale"] == "en"
    data = record["data"]
    assert data["birth_year"] == 1990
    assert data["has_insurance"] is True
    assert data["has_allergy"] is False
    assert data["is_medicating"] is None
    assert data["allergy_types"] == []

    # バックグラウンドで PDF が生成・保存される
    assert record["pdf_blob"] == FAKE_PDF
    assert record["pdf_generating"] is False
    html = fake_renderer.calls[0]
    assert "山田 花子" in html
    assert "&lt;東京都&gt;" in html
    assert "Toothache" in html
    assert "1990年4月1日" in html
    assert "2026年10月20日" in html
    assert "あり" in html
    assert EMPTY_VALUE_HTML in html


def test_submit_fills_missing_visit_date(client, clinic, monkeypatch) -> None:
    monkeypatch.setattr(main, "_utcnow", lambda: datetime(2026, 10, 19, 16, 0, tzinfo=UTC))
    response_id = _submit(client, visit_year=None, visit_month="", visit_day=None)
    data = get_response(response_id)["data"]
    # Asia/Tokyo では翌日
    assert (data["visit_year"], data["visit_month"], data["visit_day"]) == (2026, 10, 20)


def test_submit_validation(client, clinic) -> None:
    url = "/clinics/sakura-dental/questionnaire-responses"
    assert client.post(url, json=_payload(name="")).status_code == 422
    assert client.post(url, json=_payload(sex="unknown")).status_code == 422
    assert client.post(url, json=_payload(birth_month="13")).status_code == 422
    assert client.post(url, json=_payload(birth_year=1800)).status_code == 422
    assert client.post(url, json=_payload(pregnancy_months=11)).status_code == 422
    assert client.post(url, json=_payload(symptoms=["headache"])).status_code == 400
    assert client.post(url, json=_payload(locale="xx")).status_code == 400
    assert client.post("/clinics/nowhere/questionnaire-responses", json=_payload()).status_code == 404


def test_list_requires_login(client) -> None:
    assert client.get("/questionnaire-responses/list").status_code == 401
    assert client.get("/questionnaire-responses/stats").status_code == 401


def test_list_newest_first_with_pagination(logged_in) -> None:
    client = logged_in
    for i in range(22):
        save_response(
            f"r{i:02d}",
            "sakura-dental",
            "ja",
            {"name": f"患者{i}"} if i != 21 else {},
            created_at=f"2026-10-01T00:00:{i:02d}+00:00",
        )
    save_response("other", "other-clinic", "ja", {"name": "他院"}, created_at="2026-10-02T00:00:00+00:00")

    first = client.get("/questionnaire-responses/list").json()
    assert first["pagination"] == {"page": 1, "pageSize": 20, "total": 22, "totalPages": 2}
    assert len(first["questionnaires"]) == 20
    assert first["questionnaires"][0]["id"] == "r21"
    assert first["questionnaires"][0]["name"] == "（未入力）"
    assert first["questionnaires"][1]["name"] == "患者20"

    second = client.get("/questionnaire-responses/list", params={"page": 2}).json()
    assert [q["id"] for q in second["questionnaires"]] == ["r01", "r00"]


def test_stats_use_clinic_timezone(logged_in, monkeypatch) -> None:
    client = logged_in
    # 2026-10-19 12:00 (Asia/Tokyo)
    monkeypatch.setattr(main, "_utcnow", lambda: datetime(2026, 10, 19, 3, 0, tzinfo=UTC))
    save_response("a", "sakura-dental", "ja", {}, created_at="2026-10-19T01:00:00+00:00")
    save_response("b", "sakura-dental", "ja", {}, created_at="2026-10-15T01:00:00+00:00")
    save_response("c", "sakura-dental", "ja", {}, created_at="2026-10-02T00:00:00+00:00")
    save_response("d", "sakura-dental", "ja", {}, created_at="2026-08-01T00:00:00+00:00")
    # 日本時間では 10/19 になる
    save_response("e", "sakura-dental", "ja", {}, created_at="2026-10-18T16:00:00+00:00")
    save_response("x", "other-clinic", "ja", {}, created_at="2026-10-19T01:00:00+00:00")

    stats = client.get("/questionnaire-responses/stats").json()
    assert stats == {"total": 5, "today": 2, "thisWeek": 3, "thisMonth": 4}


def test_response_detail_is_scoped_to_clinic(logged_in) -> None:
    client = logged_in
    own_id = _submit(client)
    save_response("foreign", "other-clinic", "ja", {"name": "他院"})

    res = client.get(f"/questionnaire-responses/{own_id}")
    assert res.status_code == 200
    body = res.json()
    assert body["data"]["name"] == "山田 花子"
    assert body["display"]["symptoms"] == ["Toothache", "Bleeding"]
    assert body["display"]["sex"] == "女"
    assert "pdf_blob" not in body

    assert client.get("/questionnaire-responses/foreign").status_code == 404
    assert client.get("/questionnaire-responses/missing").status_code == 404


def test_pdf_download_and_states(logged_in, fake_renderer) -> None:
    client = logged_in
    stored_id = _submit(client)
    res = client.get(f"/pdf/{stored_id}")
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content == FAKE_PDF

    save_response("busy", "sakura-dental", "ja", {"name": "生成中"})
    mark_pdf_generating("busy", True)
    res = client.get("/pdf/busy")
    assert res.status_code == 202
    assert res.json() == {"status": "generating"}

    save_response("foreign", "other-clinic", "ja", {})
    assert client.get("/pdf/foreign").status_code == 404


def test_pdf_render_failure_is_reported_and_retryable(logged_in, fake_renderer) -> None:
    client = logged_in
    save_response("r1", "sakura-dental", "ja", {"name": "田中"})
    fake_renderer.error = OSError("no fonts")

    res = client.get("/pdf/r1")
    assert res.status_code == 503
    assert res.json() == {"error": "pdf_render_failed", "cause": "OSError: no fonts"}
    record = get_response("r1")
    assert record["pdf_error"] == "OSError: no fonts"
    assert record["pdf_generating"] is False
    assert record["has_pdf"] is False

    fake_renderer.error = None
    res = client.get("/pdf/r1")
    assert res.status_code == 200
    assert res.content == FAKE_PDF
    assert get_response("r1")["pdf_error"] is None


def test_pdf_render_failure_on_submit_keeps_response(client, clinic, fake_renderer) -> None:
    fake_renderer.error = RuntimeError("renderer crashed")
    response_id = _submit(client)
    record = get_response(response_id)
    assert record["has_pdf"] is False
    assert record["pdf_generating"] is False
    assert "renderer crashed" in record["pdf_error"]


def test_internal_pdf_generation_requires_token(client, clinic, fake_renderer) -> None:
    save_response("r1", "sakura-dental", "ja", {"name": "田中"})
    assert client.post("/pdf/generate/r1").status_code == 401
    bad = client.post("/pdf/generate/r1", headers={"Authorization": "Bearer wrong"})
    assert bad.status_code == 401

    res = client.post("/pdf/generate/r1", headers={"Authorization": "Bearer test-internal-token"})
    assert res.status_code == 200
    assert res.json() == {"id": "r1", "status": "generated", "bytes": len(FAKE_PDF)}
    assert get_response("r1", include_pdf=True)["pdf_blob"] == FAKE_PDF

    missing = client.post("/pdf/generate/none", headers={"Authorization": "Bearer test-internal-token"})
    assert missing.status_code == 404


def test_print_sends_pdf_to_printer(logged_in, sent_emails) -> None:
    client = logged_in
    save_response("r1", "sakura-dental", "ja", {"name": "田中"})
    save_pdf("r1", FAKE_PDF)

    res = client.post("/print/r1")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    params = sent_emails[-1]
    assert params["to"] == ["printer@example.com"]
    assert params["subject"] == "問診票 - r1"
    attachment = params["attachments"][0]
    assert attachment["filename"] == "questionnaire-r1.pdf"
    assert bytes(attachment["content"]) == FAKE_PDF


def test_print_requires_printer_email(logged_in) -> None:
    client = logged_in
    from intake.db import get_conn  # type: ignore[import]

    conn = get_conn()
    try:
        conn.execute("UPDATE clinic_settings SET printer_email = NULL WHERE clinic_id = 'sakura-dental'")
        conn.commit()
    finally:
        conn.close()
    save_response("r1", "sakura-dental", "ja", {"name": "田中"})
    res = client.post("/print/r1")
    assert res.status_code == 400
    assert res.json()["detail"] == "printer_email_not_configured"


def test_clinic_settings_crud(client, clinic) -> None:
    res = client.get("/clinic-settings", params={"clinic_id": "sakura-dental"})
    assert res.json() == {
        "clinic_id": "sakura-dental",
        "printer_email": "printer@example.com",
        "admin_email": "admin@sakura.example.com",
        "exists": True,
    }
    assert client.get("/clinic-settings").status_code == 400
    assert client.get("/clinic-settings", params={"clinic_id": "nowhere"}).json()["exists"] is False

    assert client.post("/clinic-settings", json={"printer_email": "p@example.com"}).status_code == 401

    client.post("/auth/login", json={"email": clinic["email"], "password": clinic["password"]})
    forbidden = client.post("/clinic-settings", json={"clinic_id": "other", "printer_email": "p@example.com"})
    assert forbidden.status_code == 403
    invalid = client.post("/clinic-settings", json={"printer_email": "not-an-email"})
    assert invalid.status_code == 400

    res = client.post("/clinic-settings", json={"printer_email": "new-printer@example.com"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["printer_email"] == "new-printer@example.com"
    assert data["admin_email"] == "admin@sakura.example.com"
    assert "admin_password_hash" not in data

    assert client.delete("/clinic-settings", params={"clinic_id": "other"}).status_code == 403
    assert client.delete("/clinic-settings", params={"clinic_id": "sakura-dental"}).status_code == 200
    assert client.get("/clinic-settings", params={"clinic_id": "sakura-dental"}).json()["exists"] is False
