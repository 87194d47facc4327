"""PDFレンダリングユーティリティ。

差し込み済みの HTML を A4・余白 20mm の PDF に変換する。レンダリング本体は
WeasyPrint に任せ、呼び出しごとに子プロセスを立ち上げて実行する。子プロセスは
成功・失敗・タイムアウトのいずれの場合も必ず回収する。
"""
from __future__ import annotations

import logging
import multiprocessing
import time
from typing import Any, Mapping, Protocol

from .template_engine import render_template

logger = logging.getLogger(__name__)

PAGE_CSS = "@page { size: A4; margin: 20mm; }"
PDF_MAGIC = b"%PDF"
DEFAULT_TIMEOUT_SECONDS = 60.0


class RenderError(Exception):
    """PDF 生成に失敗したことを表す例外。

    ``cause`` には原因の説明文字列を保持する（ログと API 応答に使う）。
    """

    def __init__(self, message: str, cause: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause or message

    def __str__(self) -> str:
        if self.cause and self.cause != self.message:
            return f"{self.message}: {self.cause}"
        return self.message


class PdfRenderer(Protocol):
    def render(self, html: str) -> bytes: ...


def _render_worker(html: str, base_url: str | None, conn: Any) -> None:
    """子プロセス側で WeasyPrint を実行し、結果をパイプへ送る。"""

    try:
        from weasyprint import CSS, HTML
        from weasyprint.text.fonts import FontConfiguration

        font_config = FontConfiguration()
        page_css = CSS(string=PAGE_CSS, font_config=font_config)
        # write_pdf はフォント・スタイルシートの取得を終えてからレイアウトする
        pdf_bytes = HTML(string=html, base_url=base_url).write_pdf(
            stylesheets=[page_css], font_config=font_config
        )
        conn.send(("ok", pdf_bytes))
    except Exception as exc:  # noqa: BLE001 - 親プロセスへ原因を伝える
        conn.send(("error", f"{type(exc).__name__}: {exc}"))
    finally:
        conn.close()


class WeasyPrintRenderer:
    """WeasyPrint を子プロセスで動かすレンダラー。"""

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        base_url: str | None = None,
        mp_context: Any = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.base_url = base_url
        self._ctx = mp_context or multiprocessing.get_context("spawn")

    def render(self, html: str) -> bytes:
        parent_conn, child_conn = self._ctx.Pipe(duplex=False)
        process = self._ctx.Process(
            target=_render_worker,
            args=(html, self.base_url, child_conn),
            daemon=True,
        )
        started = False
        start = time.perf_counter()
        try:
            process.start()
            started = True
            # 子側の書き込み口は親で閉じておく（子が落ちたら EOF になる）
            child_conn.close()
            if not parent_conn.poll(self.timeout_seconds):
                raise RenderError(
                    "PDF rendering timed out",
                    f"no result within {self.timeout_seconds:g}s",
                )
            try:
                status, payload = parent_conn.recv()
            except (EOFError, OSError) as exc:
                raise RenderError("PDF renderer exited unexpectedly", repr(exc)) from exc
            if status != "ok":
                raise RenderError("PDF rendering failed", str(payload))
            logger.info(
                "pdf_rendered bytes=%d duration_ms=%.1f",
                len(payload),
                (time.perf_counter() - start) * 1000,
            )
            return payload
        finally:
            parent_conn.close()
            child_conn.close()
            if started:
                if process.is_alive():
                    process.terminate()
                process.join(timeout=5)
                # SIGTERM を無視した子は強制終了する
                if process.is_alive():
                    logger.warning("pdf_render_worker_killed pid=%s", getattr(process, "pid", None))
                    process.kill()
                    process.join()


def generate_pdf(
    template_html: str, data: Mapping[str, Any], renderer: PdfRenderer
) -> bytes:
    """テンプレートへ差し込みを行い、PDF バイト列を返す。

    レンダラーの失敗や PDF でない出力はすべて ``RenderError`` として送出する。
    """

    html = render_template(template_html, data)
    try:
        pdf_bytes = renderer.render(html)
    except RenderError:
        raise
    except Exception as exc:  # noqa: BLE001 - 原因を保持して統一的な例外へ変換
        logger.exception("pdf_render_failed")
        raise RenderError("PDF rendering failed", f"{type(exc).__name__}: {exc}") from exc
    if not pdf_bytes or not bytes(pdf_bytes).startswith(PDF_MAGIC):
        raise RenderError("PDF rendering failed", "renderer returned non-PDF output")
    return bytes(pdf_bytes)


__all__ = [
    "PAGE_CSS",
    "PdfRenderer",
    "RenderError",
    "WeasyPrintRenderer",
    "generate_pdf",
]
