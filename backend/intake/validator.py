"""回答バリデーション用ユーティリティ。"""
from __future__ import annotations

from typing import Any

from fastapi import HTTPException

from .labels import _attr, iter_fields


def _option_values(field: Any) -> list[str]:
    return [str(_attr(opt, "value")) for opt in _attr(field, "options") or []]


def _as_option_value(value: Any) -> str:
    # ラジオの真偽値は "true" / "false" の選択肢で表現される
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Validator:
    """問診回答の妥当性をテンプレート定義に照らして検証する。"""

    @staticmethod
    def validate_options(template: Any, answers: dict[str, Any]) -> None:
        """選択式の項目が定義済みの選択肢だけを含むか検証する。"""
        for field in iter_fields(template):
            key = _attr(field, "id")
            value = answers.get(key)
            if value is None or value == "" or value == []:
                continue
            options = _option_values(field)
            if not options:
                continue
            field_type = _attr(field, "type")
            if field_type == "radio":
                if isinstance(value, list) or _as_option_value(value) not in options:
                    raise HTTPException(status_code=400, detail=f"{key} の値が不正です")
            elif field_type == "checkbox-group":
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise HTTPException(status_code=400, detail=f"{key} は複数選択の配列で入力してください")
                invalid = [v for v in value if v not in options]
                if invalid:
                    raise HTTPException(status_code=400, detail=f"{key} の選択肢に不正な値があります")

    @staticmethod
    def missing_required(template: Any, answers: dict[str, Any]) -> list[str]:
        """未入力の必須項目ID一覧を返す。"""
        missing: list[str] = []
        for field in iter_fields(template):
            if not _attr(field, "required", False):
                continue
            item_id = _attr(field, "id")
            val = answers.get(item_id)
            if val is None or (isinstance(val, str) and not val.strip()) or (
                isinstance(val, list) and not val
            ):
                missing.append(item_id)
        return missing
