"""Session options replayed with every statement on a connection."""

from __future__ import annotations

import logging
import re
import threading

logger = logging.getLogger(__name__)

_SET_STATEMENT = re.compile(r"SET\s+(.*)", re.IGNORECASE | re.DOTALL)


def parse_set_statement(sql: str) -> str | None:
    """
    Return the body of a ``SET`` statement, or None for any other statement.

    ``"SET a=1;"`` gives ``"a=1"``.
    """
    match = _SET_STATEMENT.fullmatch(sql.strip())
    if not match:
        return None
    return match.group(1).strip().rstrip(";").strip()


class SessionState:
    """
    Accumulated ``SET key=value`` statement bodies for one connection.

    Shared by every cursor on the connection. Entries are deduplicated by
    exact text and replayed in the order they were first added.
    """

    def __init__(self) -> None:
        self._statements: dict[str, None] = {}
        self._lock = threading.Lock()

    def add(self, statement: str) -> None:
        if not statement:
            return
        with self._lock:
            if statement not in self._statements:
                self._statements[statement] = None
                logger.info(f"Session option recorded: SET {statement}")

    def clear(self) -> None:
        with self._lock:
            self._statements.clear()
        logger.debug("Session options cleared")

    @property
    def statements(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._statements)

    def apply(self, sql: str) -> str:
        """Prefix ``sql`` with one ``SET <option>;`` line per recorded option."""
        statements = self.statements
        if not statements:
            return sql
        prefix = "".join(f"SET {statement};\n" for statement in statements)
        return prefix + sql

    def __contains__(self, statement: object) -> bool:
        with self._lock:
            return statement in self._statements

    def __len__(self) -> int:
        with self._lock:
            return len(self._statements)

    def __repr__(self) -> str:
        return f"SessionState({list(self.statements)!r})"
