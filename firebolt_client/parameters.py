"""Typed bind parameters rendered into SQL literal text."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Union

from .errors import ParameterError, UnsupportedParameterError

logger = logging.getLogger(__name__)

# Every kind of value a bind parameter may hold. Anything else is rejected.
ParameterValue = Union[str, datetime, date, None, bool, int, float, Decimal]

Parameters = Union[Mapping[str, ParameterValue], Iterable[tuple[str, ParameterValue]]]

# Backslash first so the escapes added for the other characters are left alone
_ESCAPE_CHARS = (
    ("\\", "\\\\"),
    ("\0", "\\0"),
    ("'", "\\'"),
)


def _escape_string(value: str) -> str:
    for char, replacement in _ESCAPE_CHARS:
        value = value.replace(char, replacement)
    return f"'{value}'"


def _format_datetime(value: date) -> str:
    # four-digit year, zero-padded below 1000
    text = f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    if isinstance(value, datetime) and (value.hour, value.minute, value.second) != (0, 0, 0):
        text += f" {value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    return f"'{text}'"


def _format_number(value: int | float | Decimal) -> str:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedParameterError(f"Non-finite number {value!r} has no SQL literal")
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise UnsupportedParameterError(f"Non-finite number {value!r} has no SQL literal")
        return format(value, "f")
    return str(value)


def encode_parameter(value: ParameterValue) -> str:
    """
    Render a parameter value as SQL literal text.

    Kinds are checked in a fixed order: string, date/time, null, boolean,
    sequence (rejected), number. Output never depends on the host locale.

    Raises:
        UnsupportedParameterError: For list-like values and for any type
            outside ParameterValue.
    """
    if isinstance(value, str):
        return _escape_string(value)
    if isinstance(value, date):
        return _format_datetime(value)
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple, set, frozenset)):
        raise UnsupportedParameterError("Array query parameters are not supported yet.")
    if isinstance(value, (int, float, Decimal)):
        return _format_number(value)
    raise UnsupportedParameterError(
        f"Unsupported parameter type: {type(value).__name__}"
    )


def _placeholder_pattern(name: str) -> re.Pattern[str]:
    pattern = re.escape(name) + r"(?!\w)"
    if name[:1].isalnum() or name[:1] == "_":
        pattern = r"(?<!\w)" + pattern
    return re.compile(pattern, re.IGNORECASE)


def substitute_parameters(template: str, params: Parameters) -> str:
    """
    Replace each named placeholder in a SQL template with its encoded literal.

    Names match case-insensitively as whole words, so ``:id`` is not replaced
    inside ``:identifier``. Parameters are applied one after another across
    the whole template. Names absent from the template are ignored, and
    placeholders left without a parameter are passed through for the server
    to report.

    Args:
        template: SQL text containing placeholders such as ``@id`` or ``:id``
        params: Mapping or ordered (name, value) pairs

    Returns:
        The SQL text with every matched placeholder substituted

    Raises:
        ParameterError: If a value cannot be encoded; names the parameter.
    """
    items = params.items() if isinstance(params, Mapping) else params

    for name, value in items:
        try:
            literal = encode_parameter(value)
        except UnsupportedParameterError as e:
            raise ParameterError(
                f"Error while encoding parameter {name!r}: {e}", parameter_name=name
            ) from e

        if not name:
            continue  # nothing to match
        template = _placeholder_pattern(name).sub(lambda _: literal, template)

    logger.debug("Substituted query parameters into statement")
    return template
