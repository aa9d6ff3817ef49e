"""Tests for filter, sort and page validation."""

import pytest

from memebase.exceptions.base import ValidationFailedError
from memebase.models.filters import (
    FilterCriteria,
    PageSpec,
    SortDirection,
    SortField,
    SortSpec,
    build_filter,
    validate_list_query,
)


def test_defaults():
    """Test that missing parameters take their defaults."""
    query = validate_list_query({})

    assert query.criteria == FilterCriteria()
    assert query.sort == SortSpec(SortField.CREATED, SortDirection.ASCENDING)
    assert query.page == PageSpec(page=1, page_size=5)


def test_descending_sort_key():
    """Test that a leading '-' requests descending order."""
    query = validate_list_query({"sort": "-title"})

    assert query.sort.field is SortField.TITLE
    assert query.sort.direction is SortDirection.DESCENDING


def test_string_parameters_are_coerced():
    """Test that raw query-string values are parsed as integers."""
    query = validate_list_query({"page": "3", "page_size": "10"})

    assert query.page.page == 3
    assert query.page.page_size == 10
    assert query.page.offset == 20
    assert query.page.limit == 10


def test_unknown_sort_key_rejected():
    """Test that a sort key outside the safelist is rejected."""
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_list_query({"sort": "price"})

    assert exc_info.value.field_errors == {"sort": "invalid sort value"}


def test_every_violation_is_reported():
    """Test that all invalid parameters are enumerated, not just the first."""
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_list_query({"page": 0, "page_size": 11, "sort": "-price"})

    assert exc_info.value.field_errors == {
        "page": "must be greater than 0",
        "page_size": "must be a maximum of 10",
        "sort": "invalid sort value",
    }


@pytest.mark.parametrize(
    "params, field, message",
    [
        ({"page": 1001}, "page", "must be a maximum of 1 thousand"),
        ({"page": -4}, "page", "must be greater than 0"),
        ({"page_size": 0}, "page_size", "must be greater than 0"),
        ({"page": "two"}, "page", "must be an integer value"),
    ],
)
def test_page_bounds(params, field, message):
    """Test page and page size bounds."""
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_list_query(params)

    assert exc_info.value.field_errors[field] == message


def test_page_bounds_inclusive():
    """Test that the limits themselves are accepted."""
    query = validate_list_query({"page": 1000, "page_size": 10})

    assert query.page.offset == 999 * 10


def test_custom_safelist():
    """Test that the allow-list can be narrowed by the caller."""
    with pytest.raises(ValidationFailedError):
        validate_list_query({"sort": "artist"}, safelist=("title", "-title"))

    query = validate_list_query({"sort": "-title"}, safelist=("title", "-title"))
    assert query.sort.field is SortField.TITLE


def test_sort_spec_rejects_unsafe_field():
    """Test that a SortSpec cannot hold a field outside the allow-list."""
    with pytest.raises(TypeError):
        SortSpec("price")  # type: ignore[arg-type]


def test_sort_spec_parse():
    """Test parsing sort keys directly."""
    assert SortSpec.parse("artist") == SortSpec(SortField.ARTIST)
    with pytest.raises(ValueError):
        SortSpec.parse("--artist")


def test_page_spec_enforces_bounds():
    """Test that PageSpec cannot be built out of range."""
    with pytest.raises(ValueError):
        PageSpec(page=0)
    with pytest.raises(ValueError):
        PageSpec(page_size=11)


def test_build_filter():
    """Test that empty criteria mean no constraint."""
    assert build_filter().is_empty
    assert build_filter("", "").is_empty
    assert build_filter("band", None) == FilterCriteria(artist="band")
    assert build_filter(None, "foo") == FilterCriteria(title="foo")


def test_filter_params_pass_through():
    """Test that artist and title reach the criteria."""
    query = validate_list_query({"artist": "band", "title": "foo"})

    assert query.criteria == FilterCriteria(artist="band", title="foo")
