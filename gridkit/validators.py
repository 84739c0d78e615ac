"""Reusable cell validators for the editing feature.

Every factory returns a ``Validator``: a callable taking ``(value, row)``
and returning an error message, or None when the value is acceptable.
Apart from ``required``, validators accept empty values (None or ``""``)
so optional fields can be checked without also being made mandatory.

Usage:
    editing = EditingEngine(
        validators={
            "hours": combine([required("Hours is required"), number_range(0, 24)]),
            "email": is_email(),
        }
    )
"""

from __future__ import annotations

import math
import re

from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timezone
from typing import Any

from .features.editing import Validator


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _to_datetime(value: Any) -> datetime | None:
    """Coerce a date, datetime or ISO 8601 string to a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        # fromisoformat only learned the "Z" suffix in 3.11
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def required(message: str = "This field is required") -> Validator:
    """Reject None and empty strings. ``0`` and ``False`` are values."""

    def validate(value: Any, row: Any) -> str | None:
        return message if _is_empty(value) else None

    return validate


def string_length(
    min_length: int | None = None,
    max_length: int | None = None,
    message: str | None = None,
) -> Validator:
    """Bound the length of ``str(value)``, inclusive on both ends.

    Parameters
    ----------
    min_length : int, optional
        Shortest accepted length.
    max_length : int, optional
        Longest accepted length.
    message : str, optional
        Replaces the default message for either bound.
    """

    def validate(value: Any, row: Any) -> str | None:
        if value is None:
            return None
        length = len(str(value))
        if min_length is not None and length < min_length:
            return message or f"Minimum length is {min_length} characters"
        if max_length is not None and length > max_length:
            return message or f"Maximum length is {max_length} characters"
        return None

    return validate


def number_range(
    min_value: float | None = None,
    max_value: float | None = None,
    message: str | None = None,
) -> Validator:
    """Bound a numeric value, inclusive on both ends.

    Numeric strings such as ``"7.5"`` are parsed first. Values that do not
    parse as a number, NaN included, fail with "Must be a valid number".
    """

    def validate(value: Any, row: Any) -> str | None:
        if _is_empty(value):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return "Must be a valid number"
        if math.isnan(number):
            return "Must be a valid number"
        if min_value is not None and number < min_value:
            return message or f"Minimum value is {min_value}"
        if max_value is not None and number > max_value:
            return message or f"Maximum value is {max_value}"
        return None

    return validate


def pattern(regex: str | re.Pattern[str], message: str = "Invalid format") -> Validator:
    """Require ``str(value)`` to contain a match for ``regex``.

    Anchor the pattern with ``^...$`` to match the whole value.
    """
    compiled = re.compile(regex) if isinstance(regex, str) else regex

    def validate(value: Any, row: Any) -> str | None:
        if _is_empty(value):
            return None
        return None if compiled.search(str(value)) else message

    return validate


def is_valid_date(message: str = "Invalid date") -> Validator:
    """Accept ``date``/``datetime`` objects and ISO 8601 strings."""

    def validate(value: Any, row: Any) -> str | None:
        if _is_empty(value):
            return None
        return None if _to_datetime(value) is not None else message

    return validate


def date_range(
    min_date: date | datetime | str | None = None,
    max_date: date | datetime | str | None = None,
    message: str | None = None,
) -> Validator:
    """Bound a date value, inclusive on both ends.

    Bounds and values may be dates, datetimes or ISO 8601 strings. Aware
    datetimes are compared in UTC; naive ones are taken as UTC.

    Raises
    ------
    ValueError
        If a bound cannot be parsed as a date.
    """
    lower = _to_datetime(min_date) if min_date is not None else None
    upper = _to_datetime(max_date) if max_date is not None else None
    if (min_date is not None and lower is None) or (max_date is not None and upper is None):
        raise ValueError(f"Invalid date bound: {min_date!r}, {max_date!r}")

    def validate(value: Any, row: Any) -> str | None:
        if _is_empty(value):
            return None
        parsed = _to_datetime(value)
        if parsed is None:
            return "Invalid date"
        if lower is not None and parsed < lower:
            return message or f"Date must be after {lower.date().isoformat()}"
        if upper is not None and parsed > upper:
            return message or f"Date must be before {upper.date().isoformat()}"
        return None

    return validate


def is_uuid(message: str = "Invalid UUID format") -> Validator:
    """Accept canonical hyphenated UUID strings in either case."""
    return pattern(UUID_PATTERN, message)


def is_email(message: str = "Invalid email address") -> Validator:
    """Accept ``local@domain.tld`` shaped strings."""
    return pattern(EMAIL_PATTERN, message)


def combine(validators: Iterable[Validator]) -> Validator:
    """Run validators in order and return the first error."""
    chain = tuple(validators)

    def validate(value: Any, row: Any) -> str | None:
        for validator in chain:
            result = validator(value, row)
            if result is not None:
                return result
        return None

    return validate


def custom(predicate: Callable[[Any], bool], message: str) -> Validator:
    """Wrap a boolean predicate. Empty values skip the predicate."""

    def validate(value: Any, row: Any) -> str | None:
        if _is_empty(value):
            return None
        return None if predicate(value) else message

    return validate


__all__ = [
    "EMAIL_PATTERN",
    "UUID_PATTERN",
    "combine",
    "custom",
    "date_range",
    "is_email",
    "is_uuid",
    "is_valid_date",
    "number_range",
    "pattern",
    "required",
    "string_length",
]
