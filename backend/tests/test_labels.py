"""選択肢ラベル解決のテスト。"""
from pathlib import Path
import sys
from types import SimpleNamespace

sys.path.append(str(Path(__file__).resolve().parents[1]))

from intake.labels import resolve_label, resolve_labels  # type: ignore[import]
from intake.standard_template import make_standard_template  # type: ignore[import]


TEMPLATE = make_standard_template()


def test_resolves_requested_locale() -> None:
    assert resolve_label("toothache", "symptoms", TEMPLATE, "en") == "Toothache"
    assert resolve_label("toothache", "symptoms", TEMPLATE, "ja") == "歯痛"


def test_falls_back_to_japanese_label() -> None:
    assert resolve_label("toothache", "symptoms", TEMPLATE, "fr") == "歯痛"


def test_falls_back_to_value_when_no_label_matches() -> None:
    template = {
        "sections": [
            {"fields": [{"id": "symptoms", "options": [{"value": "x", "label": {"en": "X"}}]}]}
        ]
    }
    assert resolve_label("x", "symptoms", template, "fr") == "x"


def test_unknown_value_field_or_template_returns_value() -> None:
    assert resolve_label("removed_option", "symptoms", TEMPLATE, "en") == "removed_option"
    assert resolve_label("toothache", "no_such_field", TEMPLATE, "en") == "toothache"
    assert resolve_label("toothache", "symptoms", None, "en") == "toothache"
    assert resolve_label("toothache", "symptoms", {}, "en") == "toothache"


def test_plain_string_label_is_returned_as_is() -> None:
    template = {"sections": [{"fields": [{"id": "f", "options": [{"value": "a", "label": "Alpha"}]}]}]}
    assert resolve_label("a", "f", template, "ja") == "Alpha"


def test_attribute_objects_are_supported() -> None:
    option = SimpleNamespace(value="a", label={"ja": "あ"})
    field = SimpleNamespace(id="f", options=[option])
    template = SimpleNamespace(sections=[SimpleNamespace(fields=[field])])
    assert resolve_label("a", "f", template, "en") == "あ"


def test_resolve_labels_preserves_order() -> None:
    values = ["swelling", "toothache", "unknown"]
    assert resolve_labels(values, "symptoms", TEMPLATE, "en") == ["Swelling", "Toothache", "unknown"]
    assert resolve_labels([], "symptoms", TEMPLATE, "en") == []
