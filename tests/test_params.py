"""Parameter extraction tests."""

from __future__ import annotations

import pytest
from issue_dependencies_mcp.errors import MissingParameterError, ParameterError, TypeMismatchError
from issue_dependencies_mcp.params import (
    PaginationParams,
    optional_int,
    optional_name,
    optional_pagination,
    optional_str,
    require_int,
    require_name,
    require_str,
)


def test_require_str_returns_value() -> None:
    assert require_str({"owner": "octo"}, "owner") == "octo"


def test_require_str_missing_names_the_field() -> None:
    with pytest.raises(MissingParameterError) as exc:
        require_str({}, "owner")

    assert exc.value.message == "missing required parameter: owner"
    assert exc.value.code == "UserInput"


def test_require_str_empty_string_is_missing() -> None:
    with pytest.raises(MissingParameterError):
        require_str({"repo": ""}, "repo")


def test_require_str_rejects_non_string() -> None:
    with pytest.raises(TypeMismatchError) as exc:
        require_str({"repo": 5}, "repo")

    assert "repo" in exc.value.message


@pytest.mark.parametrize("value,expected", [(42, 42), (42.0, 42), (7.0, 7)])
def test_require_int_accepts_whole_numbers(value: object, expected: int) -> None:
    assert require_int({"issue_number": value}, "issue_number") == expected


@pytest.mark.parametrize("value", ["42", True, None, [42], 42.5])
def test_require_int_rejects_non_numbers_and_fractions(value: object) -> None:
    with pytest.raises(TypeMismatchError):
        require_int({"issue_number": value}, "issue_number")


def test_require_int_zero_is_missing() -> None:
    with pytest.raises(MissingParameterError) as exc:
        require_int({"issue_number": 0}, "issue_number")

    assert "issue_number" in exc.value.message


def test_require_int_negative_is_rejected() -> None:
    with pytest.raises(ParameterError) as exc:
        require_int({"issue_number": -3.0}, "issue_number")

    assert not isinstance(exc.value, MissingParameterError)
    assert "positive" in exc.value.message


def test_optional_helpers_return_zero_values_when_absent() -> None:
    assert optional_str({}, "blocked_by_owner") == ""
    assert optional_str({"blocked_by_owner": None}, "blocked_by_owner") == ""
    assert optional_int({}, "page") == 0


def test_optional_str_rejects_wrong_type() -> None:
    with pytest.raises(TypeMismatchError):
        optional_str({"blocked_by_repo": 1}, "blocked_by_repo")


def test_optional_pagination_defaults_to_not_requested() -> None:
    pagination = optional_pagination({})
    assert pagination == PaginationParams()
    assert pagination.requested is False
    assert pagination.as_query() == {}


def test_optional_pagination_reads_float_values() -> None:
    pagination = optional_pagination({"page": 2.0, "per_page": 50.0})
    assert pagination.requested is True
    assert pagination.as_query() == {"page": "2", "per_page": "50"}


@pytest.mark.parametrize("args", [{"page": -1}, {"per_page": -1}, {"per_page": 101}])
def test_optional_pagination_rejects_out_of_range(args: dict) -> None:
    with pytest.raises(ParameterError):
        optional_pagination(args)


@pytest.mark.parametrize("args", [{"page": -1}, {"per_page": -1}, {"per_page": 101}])
def test_optional_pagination_messages_state_the_accepted_range(args: dict) -> None:
    with pytest.raises(ParameterError) as exc:
        optional_pagination(args)

    assert ">= 0" in exc.value.message or "between 0 and 100" in exc.value.message


def test_optional_pagination_zero_is_not_requested() -> None:
    assert optional_pagination({"page": 0, "per_page": 0}).requested is False


@pytest.mark.parametrize("value", ["octo", "octo-org", "my_repo", "repo.js", ".github"])
def test_require_name_accepts_github_names(value: str) -> None:
    assert require_name({"repo": value}, "repo") == value


@pytest.mark.parametrize(
    "value",
    ["../../user?", "..", ".", "a/b", "repo#frag", "repo?x=1", "oc\nto", "repo\n", "re po", "ré"],
)
def test_require_name_rejects_path_breaking_values(value: str) -> None:
    with pytest.raises(ParameterError) as exc:
        require_name({"repo": value}, "repo")

    assert not isinstance(exc.value, MissingParameterError)
    assert exc.value.message == "parameter repo is not a valid GitHub owner or repository name"


def test_require_name_keeps_missing_and_type_errors() -> None:
    with pytest.raises(MissingParameterError):
        require_name({"owner": ""}, "owner")
    with pytest.raises(TypeMismatchError):
        require_name({"owner": 3}, "owner")


def test_optional_name_empty_or_absent_is_empty() -> None:
    assert optional_name({}, "blocked_by_owner") == ""
    assert optional_name({"blocked_by_owner": ""}, "blocked_by_owner") == ""
    assert optional_name({"blocked_by_owner": "other-org"}, "blocked_by_owner") == "other-org"


def test_optional_name_rejects_path_breaking_values() -> None:
    with pytest.raises(ParameterError):
        optional_name({"blocked_by_repo": "../x"}, "blocked_by_repo")
