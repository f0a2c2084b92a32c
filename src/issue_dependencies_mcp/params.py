"""Typed extraction of tool arguments.

Tool arguments arrive as an untyped JSON object. Numbers may be encoded as floats by
the calling protocol, so integer helpers accept any whole-valued number.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .errors import MissingParameterError, ParameterError, TypeMismatchError

MAX_PER_PAGE = 100

# Owner and repository names become REST path segments.
_NAME_RE = re.compile(r"[A-Za-z0-9_.-]+")


@dataclass(frozen=True, slots=True)
class PaginationParams:
    """Optional `page` / `per_page` pair; zero means "not requested"."""

    page: int = 0
    per_page: int = 0

    @property
    def requested(self) -> bool:
        return self.page > 0 or self.per_page > 0

    def as_query(self) -> dict[str, str]:
        if not self.requested:
            return {}
        return {"page": str(self.page), "per_page": str(self.per_page)}


def _coerce_int(name: str, value: Any) -> int:
    # bool is a subclass of int; JSON true/false is never a number here.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeMismatchError(message=f"parameter {name} is not of type number")
    if isinstance(value, float):
        if not value.is_integer():
            raise TypeMismatchError(message=f"parameter {name} must be a whole number")
        return int(value)
    return value


def require_str(arguments: dict[str, Any], name: str) -> str:
    """Return a required, non-empty string parameter."""
    if name not in arguments:
        raise MissingParameterError(message=f"missing required parameter: {name}")
    value = arguments[name]
    if not isinstance(value, str):
        raise TypeMismatchError(message=f"parameter {name} is not of type string")
    if value == "":
        raise MissingParameterError(message=f"missing required parameter: {name}")
    return value


def require_int(arguments: dict[str, Any], name: str) -> int:
    """Return a required positive integer parameter."""
    if name not in arguments:
        raise MissingParameterError(message=f"missing required parameter: {name}")
    value = _coerce_int(name, arguments[name])
    if value == 0:
        raise MissingParameterError(message=f"missing required parameter: {name}")
    if value < 0:
        raise ParameterError(message=f"parameter {name} must be a positive integer")
    return value


def optional_str(arguments: dict[str, Any], name: str) -> str:
    """Return a string parameter, or "" when absent."""
    value = arguments.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeMismatchError(message=f"parameter {name} is not of type string")
    return value


def _check_name(name: str, value: str) -> str:
    if not _NAME_RE.fullmatch(value) or value in {".", ".."}:
        raise ParameterError(message=f"parameter {name} is not a valid GitHub owner or repository name")
    return value


def require_name(arguments: dict[str, Any], name: str) -> str:
    """Return a required owner or repository name."""
    return _check_name(name, require_str(arguments, name))


def optional_name(arguments: dict[str, Any], name: str) -> str:
    """Return an owner or repository name, or "" when absent or empty."""
    value = optional_str(arguments, name)
    if not value:
        return ""
    return _check_name(name, value)


def optional_int(arguments: dict[str, Any], name: str) -> int:
    """Return an integer parameter, or 0 when absent."""
    value = arguments.get(name)
    if value is None:
        return 0
    return _coerce_int(name, value)


def optional_pagination(arguments: dict[str, Any]) -> PaginationParams:
    """Read the optional `page` / `per_page` pair.

    Zero (or absent) means "not requested".

    Raises:
        ParameterError: If either value is negative or `per_page` exceeds 100.
    """
    page = optional_int(arguments, "page")
    per_page = optional_int(arguments, "per_page")
    if page < 0:
        raise ParameterError(message="parameter page must be >= 0")
    if per_page < 0 or per_page > MAX_PER_PAGE:
        raise ParameterError(message=f"parameter per_page must be between 0 and {MAX_PER_PAGE}")
    return PaginationParams(page=page, per_page=per_page)
