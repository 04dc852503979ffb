"""Tabular query results decoded from engine responses."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from .errors import DecodeError


@dataclass(frozen=True)
class Column:
    """A result column and the type tag the engine declared for it."""
    name: str
    type: str


@dataclass(frozen=True)
class QueryResult:
    """Columns and rows of one executed statement."""
    columns: tuple[Column, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()
    statistics: dict[str, Any] | None = field(default=None, compare=False)

    @classmethod
    def empty(cls) -> QueryResult:
        return cls()

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def as_dicts(self) -> list[dict[str, Any]]:
        """Rows keyed by column name."""
        names = self.column_names
        return [dict(zip(names, row)) for row in self.rows]


def _decode_columns(meta: Any) -> tuple[Column, ...]:
    if not isinstance(meta, list):
        raise DecodeError("Response 'meta' must be a list of columns")
    columns = []
    for i, entry in enumerate(meta):
        if not isinstance(entry, dict) or "name" not in entry:
            raise DecodeError(f"Column {i} in response 'meta' has no name")
        columns.append(Column(name=str(entry["name"]), type=str(entry.get("type", ""))))
    return tuple(columns)


def _decode_row(row: Any, columns: tuple[Column, ...], index: int) -> tuple[Any, ...]:
    if isinstance(row, list):
        if len(row) != len(columns):
            raise DecodeError(
                f"Row {index} has {len(row)} values, expected {len(columns)}"
            )
        return tuple(row)
    if isinstance(row, dict):
        try:
            return tuple(row[c.name] for c in columns)
        except KeyError as e:
            raise DecodeError(f"Row {index} is missing column {e.args[0]!r}") from e
    raise DecodeError(f"Row {index} must be an array or an object")


def decode_result(raw_body: str | None, source: str | None = None) -> QueryResult:
    """
    Decode an engine response body into a QueryResult.

    ``source`` names the endpoint the body came from and is included in any
    DecodeError message.

    Accepts ``{"meta": [{"name", "type"}], "data": [...]}`` where each row is
    either an array in column order or an object keyed by column name. An
    empty body decodes to an empty result.

    Raises:
        DecodeError: Body is not JSON or does not have the meta/data shape.
    """
    try:
        return _decode_payload(raw_body)
    except DecodeError as e:
        if source is None:
            raise
        raise DecodeError(f"Invalid response from {source}: {e}") from e


def _decode_payload(raw_body: str | None) -> QueryResult:
    if raw_body is None or not raw_body.strip():
        return QueryResult.empty()

    try:
        payload = json.loads(raw_body)
    except ValueError as e:
        raise DecodeError(f"Response body is not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError("Response body must be a JSON object")
    if "meta" not in payload or "data" not in payload:
        raise DecodeError("Response body is missing 'meta' or 'data'")

    columns = _decode_columns(payload["meta"])
    data = payload["data"]
    if not isinstance(data, list):
        raise DecodeError("Response 'data' must be a list of rows")

    rows = tuple(_decode_row(row, columns, i) for i, row in enumerate(data))
    statistics = payload.get("statistics")
    return QueryResult(
        columns=columns,
        rows=rows,
        statistics=statistics if isinstance(statistics, dict) else None,
    )
