"""メール送信（Resend）。

問診票 PDF のプリンター宛て送信と、パスワード再設定リンクの送付を行う。
"""
from __future__ import annotations

import logging
from typing import Any

import resend

from .config import get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """メール送信に失敗したことを表す例外。"""


def _send(params: dict[str, Any]) -> str | None:
    settings = get_settings().email
    if not settings.enabled:
        raise EmailDeliveryError("RESEND_API_KEY is not configured")
    resend.api_key = settings.api_key
    params = {"from": settings.from_email, **params}
    try:
        response = resend.Emails.send(params)
    except Exception as exc:  # noqa: BLE001 - SDK の例外を統一的な例外へ変換
        logger.exception("email_send_failed subject=%s", params.get("subject"))
        raise EmailDeliveryError(str(exc)) from exc
    if isinstance(response, dict):
        return response.get("id")
    return getattr(response, "id", None)


def send_questionnaire_pdf(to: str, response_id: str, pdf_bytes: bytes) -> str | None:
    """問診票 PDF を添付してプリンターのメールアドレスへ送る。"""

    message_id = _send(
        {
            "to": [to],
            "subject": f"問診票 - {response_id}",
            "html": "<p>問診票のPDFを添付します。</p>",
            "attachments": [
                {
                    "filename": f"questionnaire-{response_id}.pdf",
                    "content": list(pdf_bytes),
                }
            ],
        }
    )
    logger.info("questionnaire_pdf_sent response_id=%s message_id=%s", response_id, message_id)
    return message_id


def send_password_reset(to: str, reset_url: str, ttl_minutes: int) -> str | None:
    html = (
        "<h2>パスワード再設定のご案内</h2>"
        "<p>以下のリンクをクリックして、パスワードを再設定してください。</p>"
        f'<p><a href="{reset_url}">{reset_url}</a></p>'
        f"<p>このリンクは{ttl_minutes}分間有効です。</p>"
        "<p>心当たりがない場合は、このメールを無視してください。</p>"
    )
    return _send({"to": [to], "subject": "パスワード再設定のご案内", "html": html})


__all__ = ["EmailDeliveryError", "send_password_reset", "send_questionnaire_pdf"]
