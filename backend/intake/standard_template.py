"""標準の歯科問診テンプレート定義。

テンプレート未設定のクリニックはこの定義を使う。起動時に DB へ投入される。
"""
from __future__ import annotations

from typing import Any

STANDARD_TEMPLATE_ID = "standard"
STANDARD_TEMPLATE_NAME = "標準歯科問診票"


def _label(ja: str, en: str) -> dict[str, str]:
    return {"ja": ja, "en": en}


def _presence_options() -> list[dict[str, Any]]:
    return [
        {"value": "true", "label": _label("あり", "Yes")},
        {"value": "false", "label": _label("なし", "No")},
    ]


def _yes_no_options() -> list[dict[str, Any]]:
    return [
        {"value": "true", "label": _label("はい", "Yes")},
        {"value": "false", "label": _label("いいえ", "No")},
    ]


def _text(field_id: str, ja: str, en: str, *, multiline: bool = False, required: bool = False) -> dict[str, Any]:
    return {
        "id": field_id,
        "type": "textarea" if multiline else "text",
        "label": _label(ja, en),
        "required": required,
    }


def _radio(field_id: str, ja: str, en: str, options: list[dict[str, Any]], *, required: bool = False) -> dict[str, Any]:
    return {
        "id": field_id,
        "type": "radio",
        "label": _label(ja, en),
        "required": required,
        "options": options,
    }


def _checkbox_group(field_id: str, ja: str, en: str, options: list[tuple[str, str, str]]) -> dict[str, Any]:
    return {
        "id": field_id,
        "type": "checkbox-group",
        "label": _label(ja, en),
        "required": False,
        "options": [
            {"value": value, "label": _label(opt_ja, opt_en)} for value, opt_ja, opt_en in options
        ],
    }


def make_standard_template() -> dict[str, Any]:
    """標準テンプレート（日本語・英語ラベル付き）を返す。"""

    return {
        "sections": [
            {
                "id": "basic",
                "title": _label("基本情報", "Basic Information"),
                "fields": [
                    _text("name", "氏名", "Name", required=True),
                    _radio(
                        "sex",
                        "性別",
                        "Gender",
                        [
                            {"value": "male", "label": _label("男", "Male")},
                            {"value": "female", "label": _label("女", "Female")},
                        ],
                        required=True,
                    ),
                    _text("birth_year", "生年", "Birth Year"),
                    _text("birth_month", "生月", "Birth Month"),
                    _text("birth_day", "生日", "Birth Day"),
                    _text("phone", "電話番号", "Phone"),
                    _text("address", "住所", "Address", multiline=True),
                    _radio("has_insurance", "健康保険証", "Health Insurance", _presence_options()),
                    _text("nationality", "国籍", "Nationality"),
                ],
            },
            {
                "id": "symptoms",
                "title": _label("症状", "Symptoms"),
                "fields": [
                    _checkbox_group(
                        "symptoms",
                        "症状",
                        "Symptoms",
                        [
                            ("toothache", "歯痛", "Toothache"),
                            ("bleeding", "出血", "Bleeding"),
                            ("swelling", "腫れ", "Swelling"),
                            ("other", "その他", "Other"),
                        ],
                    ),
                    _text("symptom_other", "その他の症状", "Other Symptoms", multiline=True),
                ],
            },
            {
                "id": "allergy",
                "title": _label("アレルギー", "Allergies"),
                "fields": [
                    _radio("has_allergy", "アレルギー", "Allergies", _presence_options()),
                    _checkbox_group(
                        "allergy_types",
                        "アレルギーの種類",
                        "Types of Allergies",
                        [
                            ("medicine", "薬", "Medicine"),
                            ("food", "食物", "Food"),
                            ("other", "その他", "Other"),
                        ],
                    ),
                    _text("allergy_other", "その他のアレルギー", "Other Allergies", multiline=True),
                ],
            },
            {
                "id": "medication",
                "title": _label("服薬", "Medication"),
                "fields": [
                    _radio("is_medicating", "服薬中", "Currently Taking Medication", _presence_options()),
                    _text("medication_detail", "服薬内容", "Medication Details", multiline=True),
                ],
            },
            {
                "id": "anesthesia_pregnancy",
                "title": _label("麻酔・抜歯・妊娠・授乳", "Anesthesia, Extraction, Pregnancy"),
                "fields": [
                    _radio("anesthesia_trouble", "麻酔でトラブル", "Trouble with Anesthesia", _presence_options()),
                    _radio("has_extraction", "抜歯経験", "Previous Extraction", _presence_options()),
                    _radio("is_pregnant", "妊娠中", "Pregnant", _presence_options()),
                    _text("pregnancy_months", "妊娠月数", "Months of Pregnancy"),
                    _radio("is_lactating", "授乳中", "Breastfeeding", _presence_options()),
                ],
            },
            {
                "id": "medical_history",
                "title": _label("既往歴", "Medical History"),
                "fields": [
                    _checkbox_group(
                        "past_diseases",
                        "既往歴",
                        "Past Diseases",
                        [
                            ("diabetes", "糖尿病", "Diabetes"),
                            ("hypertension", "高血圧", "Hypertension"),
                            ("heart_disease", "心臓病", "Heart Disease"),
                            ("other", "その他", "Other"),
                        ],
                    ),
                    _text("disease_other", "その他の既往歴", "Other Past Diseases", multiline=True),
                    _radio("has_under_treatment", "治療中", "Currently Under Treatment", _presence_options()),
                    _text(
                        "disease_under_treatment_detail",
                        "治療内容",
                        "Treatment Details",
                        multiline=True,
                    ),
                ],
            },
            {
                "id": "treatment_preferences",
                "title": _label("治療希望", "Treatment Preferences"),
                "fields": [
                    _checkbox_group(
                        "treatment_preferences",
                        "治療希望",
                        "Treatment Preferences",
                        [
                            ("cleaning", "クリーニング", "Cleaning"),
                            ("filling", "詰め物", "Filling"),
                            ("extraction", "抜歯", "Extraction"),
                            ("other", "その他", "Other"),
                        ],
                    ),
                    _text("treatment_other", "その他の治療希望", "Other Treatment Preferences", multiline=True),
                ],
            },
            {
                "id": "interpreter",
                "title": _label("通訳", "Interpreter"),
                "fields": [
                    _radio(
                        "can_bring_interpreter",
                        "通訳を連れてくる",
                        "Can Bring an Interpreter",
                        _yes_no_options(),
                    ),
                ],
            },
        ],
    }


__all__ = ["STANDARD_TEMPLATE_ID", "STANDARD_TEMPLATE_NAME", "make_standard_template"]
