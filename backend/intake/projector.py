"""問診回答を PDF テンプレート用の平坦なデータへ射影する。

回答レコード（型付きの値・コード値の配列・三値の真偽値・欠けうる日付）を、
差し込みエンジンが扱う文字列キーの辞書に変換する。出力キーは常にすべて揃い、
同じ入力からは常に同じ出力が得られる。
"""
from __future__ import annotations

from datetime import date
from typing import Any, Mapping

from .labels import resolve_labels

SEX_LABELS = {"male": "男", "female": "女"}

# 真偽値の表記は項目の意味に応じて使い分ける（あり/なし と はい/いいえ）
PRESENCE_TOKENS = ("あり", "なし")
YES_NO_TOKENS = ("はい", "いいえ")
BLANK_TOKEN = ""

TEXT_FIELDS = (
    "name",
    "phone",
    "address",
    "nationality",
    "symptom_other",
    "allergy_other",
    "medication_detail",
    "disease_other",
    "disease_under_treatment_detail",
    "treatment_other",
)

PRESENCE_FIELDS = (
    "has_insurance",
    "has_allergy",
    "is_medicating",
    "anesthesia_trouble",
    "has_extraction",
    "is_pregnant",
    "is_lactating",
    "has_under_treatment",
)

YES_NO_FIELDS = ("can_bring_interpreter",)

CODED_FIELDS = (
    "symptoms",
    "allergy_types",
    "past_diseases",
    "treatment_preferences",
)

NUMBER_FIELDS = ("birth_year", "birth_month", "birth_day", "pregnancy_months")

PROJECTED_KEYS: tuple[str, ...] = (
    "name",
    "sex",
    "birth_year",
    "birth_month",
    "birth_day",
    "birth_date",
    "phone",
    "address",
    "has_insurance",
    "nationality",
    "symptoms",
    "symptom_other",
    "has_allergy",
    "allergy_types",
    "allergy_other",
    "is_medicating",
    "medication_detail",
    "anesthesia_trouble",
    "has_extraction",
    "is_pregnant",
    "pregnancy_months",
    "is_lactating",
    "past_diseases",
    "disease_other",
    "has_under_treatment",
    "disease_under_treatment_detail",
    "treatment_preferences",
    "treatment_other",
    "can_bring_interpreter",
    "visit_year",
    "visit_month",
    "visit_day",
    "visit_date",
)

_TRUE_STRINGS = {"true", "あり"}
_FALSE_STRINGS = {"false", "なし"}


def coerce_int(value: Any) -> int | None:
    """数値または数字文字列を整数へ。変換できなければ None。"""

    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def coerce_tristate(value: Any) -> bool | None:
    """真偽値を True / False / None（未回答）の三値へ正規化する。"""

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        if value in _TRUE_STRINGS:
            return True
        if value in _FALSE_STRINGS:
            return False
    return None


def coerce_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None]


def format_tristate(value: Any, tokens: tuple[str, str] = PRESENCE_TOKENS) -> str:
    """三値の真偽値を項目ごとの表記へ変換する。未回答は空文字のまま。"""

    state = coerce_tristate(value)
    if state is None:
        return BLANK_TOKEN
    return tokens[0] if state else tokens[1]


def format_japanese_date(year: int | None, month: int | None, day: int | None) -> str:
    if not year or not month or not day:
        return ""
    return f"{year}年{month}月{day}日"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _number_text(value: Any) -> str:
    number = coerce_int(value)
    return "" if number is None else str(number)


def _response_payload(response: Any) -> tuple[Mapping[str, Any], str]:
    if isinstance(response, Mapping):
        data = response.get("data")
        locale = response.get("locale")
    else:
        data = getattr(response, "data", None)
        locale = getattr(response, "locale", None)
    if not isinstance(data, Mapping):
        data = {}
    return data, (locale or "ja")


def project(response: Any, template: Any, *, today: date | None = None) -> dict[str, Any]:
    """回答レコードを PDF 差し込み用の辞書へ変換する。

    Args:
        response: ``data`` と ``locale`` を持つ回答レコード（辞書または属性オブジェクト）。
        template: 選択肢ラベルの参照に使う問診テンプレート。None 可。
        today: 来院日が欠けている場合に補う日付。省略時は実行日。
    """

    data, locale = _response_payload(response)
    result: dict[str, Any] = {}

    for key in TEXT_FIELDS:
        result[key] = _text(data.get(key))

    result["sex"] = SEX_LABELS.get(_text(data.get("sex")), "")

    for key in NUMBER_FIELDS:
        result[key] = _number_text(data.get(key))
    result["birth_date"] = format_japanese_date(
        coerce_int(data.get("birth_year")),
        coerce_int(data.get("birth_month")),
        coerce_int(data.get("birth_day")),
    )

    for key in PRESENCE_FIELDS:
        result[key] = format_tristate(data.get(key), PRESENCE_TOKENS)
    for key in YES_NO_FIELDS:
        result[key] = format_tristate(data.get(key), YES_NO_TOKENS)

    for key in CODED_FIELDS:
        result[key] = resolve_labels(coerce_list(data.get(key)), key, template, locale)

    base = today or date.today()
    visit_year = coerce_int(data.get("visit_year")) or base.year
    visit_month = coerce_int(data.get("visit_month")) or base.month
    visit_day = coerce_int(data.get("visit_day")) or base.day
    result["visit_year"] = str(visit_year)
    result["visit_month"] = str(visit_month)
    result["visit_day"] = str(visit_day)
    result["visit_date"] = format_japanese_date(visit_year, visit_month, visit_day)

    return {key: result[key] for key in PROJECTED_KEYS}


__all__ = [
    "BLANK_TOKEN",
    "CODED_FIELDS",
    "PRESENCE_FIELDS",
    "PRESENCE_TOKENS",
    "PROJECTED_KEYS",
    "YES_NO_FIELDS",
    "YES_NO_TOKENS",
    "coerce_int",
    "coerce_list",
    "coerce_tristate",
    "format_japanese_date",
    "format_tristate",
    "project",
]
