"""Tests for assetgc.serde."""

from datetime import timezone

import pytest

from assetgc.serde import (
    as_str_object_dict,
    optional_bool,
    optional_int,
    optional_string,
    optional_timestamp,
    require_string,
    sequence_items,
)


def test_as_str_object_dict_normalizes_keys() -> None:
    assert as_str_object_dict({1: "a"}, field_name="x") == {"1": "a"}


def test_as_str_object_dict_rejects_non_mapping() -> None:
    with pytest.raises(TypeError, match="x must be a mapping"):
        as_str_object_dict([], field_name="x")


def test_require_string_rejects_empty() -> None:
    with pytest.raises(TypeError, match="non-empty"):
        require_string("", field_name="x")
    assert require_string("ok", field_name="x") == "ok"


def test_optional_string() -> None:
    assert optional_string(None, field_name="x") is None
    with pytest.raises(TypeError):
        optional_string(1, field_name="x")


def test_optional_int_rejects_bool() -> None:
    assert optional_int(3, field_name="x") == 3
    with pytest.raises(TypeError):
        optional_int(True, field_name="x")


def test_optional_bool_default() -> None:
    assert optional_bool(None, field_name="x") is False
    assert optional_bool(None, field_name="x", default=True) is True
    with pytest.raises(TypeError):
        optional_bool("yes", field_name="x")


def test_sequence_items() -> None:
    assert sequence_items(None, field_name="x") == ()
    assert sequence_items([1, 2], field_name="x") == (1, 2)
    with pytest.raises(TypeError, match="sequence"):
        sequence_items("ab", field_name="x")


def test_optional_timestamp() -> None:
    assert optional_timestamp(None, field_name="x") is None
    parsed = optional_timestamp("2026-01-01T00:00:00+00:00", field_name="x")
    assert parsed is not None
    assert parsed.tzinfo == timezone.utc
    with pytest.raises(ValueError, match="ISO-8601"):
        optional_timestamp("yesterday", field_name="x")
    with pytest.raises(TypeError):
        optional_timestamp(0, field_name="x")
