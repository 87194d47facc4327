"""選択肢の保存値を表示ラベルへ変換するユーティリティ。

問診回答には ``"toothache"`` のようなコード値が保存される。表示や PDF 出力時に
テンプレートの選択肢定義を参照してロケール別のラベルへ置き換える。
テンプレートが欠けていたり古かったりしても例外は出さず、元の値を返す。
"""
from __future__ import annotations

from typing import Any, Iterable

FALLBACK_LOCALE = "ja"


def _attr(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _option_label(label: Any, locale: str, value: str) -> str:
    if isinstance(label, str):
        return label or value
    if isinstance(label, dict):
        return label.get(locale) or label.get(FALLBACK_LOCALE) or value
    return value


def iter_fields(template: Any) -> Iterable[Any]:
    """テンプレート内の全フィールドをセクション順に列挙する。"""

    if template is None:
        return
    for section in _attr(template, "sections") or []:
        for field in _attr(section, "fields") or []:
            yield field


def resolve_label(value: str, field_id: str, template: Any, locale: str) -> str:
    """保存値 ``value`` に対応する ``locale`` のラベルを返す。

    該当フィールド・選択肢が見つからない場合は ``value`` をそのまま返す。
    ロケールのラベルが無い場合は日本語ラベルへフォールバックする。
    """

    for field in iter_fields(template):
        if _attr(field, "id") != field_id:
            continue
        options = _attr(field, "options")
        if not options:
            continue
        for option in options:
            if _attr(option, "value") != value:
                continue
            label = _attr(option, "label")
            if label:
                return _option_label(label, locale, value)
    return value


def resolve_labels(
    values: Iterable[str], field_id: str, template: Any, locale: str
) -> list[str]:
    return [resolve_label(value, field_id, template, locale) for value in values]


__all__ = ["FALLBACK_LOCALE", "iter_fields", "resolve_label", "resolve_labels"]
