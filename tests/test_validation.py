from __future__ import annotations

import pytest
from pydantic import ValidationError

from learning_plans.validation import (
    NULL_ALLOWED,
    ErrorMessage,
    InvalidParameterError,
    ParamType,
    PropertyDefinition,
    clean_param,
    validate_param,
)


@pytest.mark.parametrize(
    ("value", "param_type"),
    [
        (5, ParamType.INT),
        ("12", ParamType.INT),
        (-3, ParamType.INT),
        (2.5, ParamType.FLOAT),
        ("0.25", ParamType.FLOAT),
        (True, ParamType.BOOL),
        (0, ParamType.BOOL),
        ("1", ParamType.BOOL),
        ("Plain text", ParamType.TEXT),
        ("idnumber-01_a", ParamType.ALPHANUMEXT),
        ("<b>anything</b>", ParamType.RAW),
    ],
)
def test_validate_param_accepts_values_matching_their_type(value, param_type) -> None:
    validate_param(value, param_type)


@pytest.mark.parametrize(
    ("value", "param_type"),
    [
        ("12abc", ParamType.INT),
        (3.5, ParamType.INT),
        ("abc", ParamType.FLOAT),
        ("yes", ParamType.BOOL),
        (2, ParamType.BOOL),
        ("<b>bold</b>", ParamType.TEXT),
        ("<i>x</i>", ParamType.NOTAGS),
        ("with space", ParamType.ALPHANUMEXT),
        ([1, 2], ParamType.RAW),
        ({"a": 1}, ParamType.TEXT),
    ],
)
def test_validate_param_rejects_values_altered_by_cleaning(value, param_type) -> None:
    with pytest.raises(InvalidParameterError):
        validate_param(value, param_type)


def test_validate_param_null_handling() -> None:
    assert validate_param(None, ParamType.INT, NULL_ALLOWED) is None
    with pytest.raises(InvalidParameterError):
        validate_param(None, ParamType.INT)


def test_validate_param_returns_cleaned_value() -> None:
    assert validate_param("42", ParamType.INT) == 42
    assert validate_param(True, ParamType.BOOL) == 1


def test_clean_param_bool_words() -> None:
    assert clean_param("Yes", ParamType.BOOL) == 1
    assert clean_param("off", ParamType.BOOL) == 0
    assert clean_param("", ParamType.BOOL) == 0
    assert clean_param("anything", ParamType.BOOL) == 1


def test_clean_param_strips_tags_and_extra_characters() -> None:
    assert clean_param("<p>Hello</p>", ParamType.TEXT) == "Hello"
    assert clean_param("a b!c", ParamType.ALPHANUMEXT) == "abc"
    assert clean_param("7 apples", ParamType.INT) == 7


def test_error_message_is_structured() -> None:
    message = ErrorMessage("invalidgrade", "tool_lp", {"max": 5})
    assert message.as_dict() == {"code": "invalidgrade", "component": "tool_lp", "params": {"max": 5}}
    assert str(ErrorMessage("invaliddata")) == "error/invaliddata"


def test_property_definition_default_presence_decides_requirement() -> None:
    required = PropertyDefinition.model_validate({"type": ParamType.TEXT})
    optional = PropertyDefinition.model_validate({"type": ParamType.INT, "default": None, "null": NULL_ALLOWED})
    assert not required.has_default
    assert optional.has_default
    assert optional.default is None


def test_property_definition_rejects_unknown_keys() -> None:
    with pytest.raises(ValidationError):
        PropertyDefinition.model_validate({"type": ParamType.INT, "defualt": 1})
