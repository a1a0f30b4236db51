"""Unit tests for query-parameter filter parsing"""

import pytest
from datetime import date
from energy_gateway.domain.exceptions import ValidationError
from energy_gateway.domain.filters import (
    DAY_FROM,
    EQ,
    FilterField,
    clamp_per_page,
    parse_bool,
    parse_filters,
)

FIELDS = (
    FilterField("status", "status"),
    FilterField("meter_id", "meter_id", kind="int"),
    FilterField("from", "created_at", op=DAY_FROM, kind="date"),
    FilterField("is_verified", "is_verified", kind="bool"),
)


def test_empty_params_yield_defaults():
    spec = parse_filters({}, FIELDS)

    assert spec.predicates == []
    assert spec.page == 1
    assert spec.per_page == 15
    assert spec.sort_by is None


def test_enum_like_values_pass_through():
    """Unknown statuses are not rejected on listings"""
    spec = parse_filters({"status": "no-such-status"}, FIELDS)

    assert spec.predicates[0].column == "status"
    assert spec.predicates[0].op == EQ
    assert spec.predicates[0].value == "no-such-status"


def test_blank_values_are_ignored():
    spec = parse_filters({"status": "  ", "meter_id": ""}, FIELDS)
    assert spec.predicates == []


def test_typed_values_are_coerced():
    spec = parse_filters({"meter_id": "7", "from": "2024-01-31", "is_verified": "yes"}, FIELDS)
    values = {p.column: p.value for p in spec.predicates}

    assert values["meter_id"] == 7
    assert values["created_at"] == date(2024, 1, 31)
    assert values["is_verified"] is True


def test_unparsable_typed_value_raises():
    with pytest.raises(ValidationError) as exc_info:
        parse_filters({"meter_id": "abc"}, FIELDS)

    assert "meter_id" in exc_info.value.errors


def test_sort_by_outside_allow_list_is_ignored():
    spec = parse_filters({"sort_by": "password"}, FIELDS, sort_fields=("created_at",), default_sort="created_at")
    assert spec.sort_by is None


def test_default_sort_applies_when_missing():
    spec = parse_filters({}, FIELDS, sort_fields=("created_at",), default_sort="created_at")

    assert spec.sort_by == "created_at"
    assert spec.sort_direction == "desc"


def test_invalid_sort_direction_raises():
    with pytest.raises(ValidationError):
        parse_filters({"sort_direction": "sideways"}, FIELDS)


def test_per_page_clamped():
    assert parse_filters({"per_page": "500"}, FIELDS).per_page == 100
    assert parse_filters({"per_page": "0"}, FIELDS).per_page == 1
    assert clamp_per_page(20) == 20


def test_page_never_below_one():
    assert parse_filters({"page": "-3"}, FIELDS).page == 1


def test_search_only_with_columns():
    assert parse_filters({"search": "solar"}, FIELDS).search is None
    assert parse_filters({"search": "solar"}, FIELDS, search_columns=("notes",)).search == "solar"


def test_parse_bool():
    assert parse_bool("1")
    assert parse_bool("TRUE")
    assert parse_bool("on")
    assert not parse_bool("0")
    assert not parse_bool("false")
