"""Validator ユーティリティのテスト。"""
from pathlib import Path
import sys

import pytest
from fastapi import HTTPException

sys.path.append(str(Path(__file__).resolve().parents[1]))

from intake.standard_template import make_standard_template  # type: ignore
from intake.validator import Validator  # type: ignore


TEMPLATE = make_standard_template()


def test_missing_required() -> None:
    assert Validator.missing_required(TEMPLATE, {}) == ["name", "sex"]
    assert Validator.missing_required(TEMPLATE, {"name": "  ", "sex": "male"}) == ["name"]
    assert Validator.missing_required(TEMPLATE, {"name": "田中", "sex": "male"}) == []


def test_radio_accepts_defined_options_and_booleans() -> None:
    Validator.validate_options(TEMPLATE, {"sex": "female", "has_insurance": True, "has_allergy": None})
    with pytest.raises(HTTPException):
        Validator.validate_options(TEMPLATE, {"sex": "unknown"})


def test_checkbox_group_rejects_unknown_values() -> None:
    Validator.validate_options(TEMPLATE, {"symptoms": ["toothache", "other"], "allergy_types": []})
    with pytest.raises(HTTPException) as excinfo:
        Validator.validate_options(TEMPLATE, {"symptoms": ["toothache", "headache"]})
    assert excinfo.value.status_code == 400


def test_fields_without_options_are_not_checked() -> None:
    Validator.validate_options(TEMPLATE, {"name": "<anything>", "pregnancy_months": 3})
    Validator.validate_options(None, {"symptoms": ["whatever"]})
