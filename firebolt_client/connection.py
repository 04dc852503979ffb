"""Driver-style connection and cursor objects."""

from __future__ import annotations

import dataclasses
import logging
import threading
from types import TracebackType
from typing import Any, Iterator

from .auth import AuthSession
from .config import ClientConfig
from .errors import InterfaceError
from .executor import ConnectionContext, QueryExecutor, normalize_engine_url
from .parameters import Parameters, substitute_parameters
from .results import QueryResult, decode_result
from .session import SessionState, parse_set_statement

logger = logging.getLogger(__name__)


class Connection:
    """
    A logical connection to one engine and database.

    Owns the credential cache and the session options shared by all of its
    cursors. Account id and engine URL are looked up on first use when only
    their names are configured.

    Usage:
        with connect(database="sales", engine_name="reporting") as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM orders WHERE id = @id", {"@id": 42})
            rows = cur.fetchall()
    """

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self._auth = AuthSession(self.config)
        self._executor = QueryExecutor(self._auth, self.config)
        self.context = ConnectionContext(
            engine_url=self.config.engine_url,
            database=self.config.database,
            account_id=self.config.account_id,
        )
        self._target_lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> Connection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def session_state(self) -> SessionState:
        return self.context.session_state

    def cursor(self) -> Cursor:
        self._check_open()
        return Cursor(self)

    def execute(
        self,
        sql: str,
        parameters: Parameters | None = None,
        timeout: float | None = None,
    ) -> QueryResult:
        """Run one statement on a fresh cursor and return its result."""
        with self.cursor() as cur:
            cur.execute(sql, parameters, timeout=timeout)
            return cur.result

    def clear_set_list(self) -> None:
        """Forget every ``SET`` option recorded on this connection."""
        self.context.session_state.clear()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._auth.invalidate()
            logger.debug("Connection closed")

    def _check_open(self) -> None:
        if self._closed:
            raise InterfaceError("Connection is closed")

    def _resolve_target(self, timeout: float | None = None) -> None:
        with self._target_lock:
            ctx = self.context
            discovery = self._executor.discovery

            if not ctx.account_id and self.config.account_name:
                ctx.account_id = discovery.account_id_by_name(self.config.account_name, timeout=timeout)

            if not ctx.engine_url and self.config.engine_name:
                if not ctx.account_id:
                    raise InterfaceError(
                        f"account_id or account_name is required to look up engine "
                        f"{self.config.engine_name!r}"
                    )
                ctx.engine_url = discovery.engine_url_by_name(
                    self.config.engine_name, ctx.account_id, timeout=timeout
                )

    def _run(self, sql: str, timeout: float | None) -> str | None:
        self._check_open()
        # SET only touches session state, so it needs no target
        if parse_set_statement(sql) is None:
            self._resolve_target(timeout)
        return self._executor.execute(self.context, sql, timeout=timeout)


class Cursor:
    """Executes statements on a connection and hands back their rows."""

    arraysize: int = 1

    def __init__(self, connection: Connection):
        self._connection = connection
        self._result: QueryResult | None = None
        self._position = 0
        self._closed = False

    def __enter__(self) -> Cursor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while (row := self.fetchone()) is not None:
            yield row

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def result(self) -> QueryResult:
        if self._result is None:
            raise InterfaceError("No statement has been executed")
        return self._result

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        """DB-API column descriptions; only name and type code are known."""
        if self._result is None or not self._result.columns:
            return None
        return [(c.name, c.type, None, None, None, None, None) for c in self._result.columns]

    @property
    def rowcount(self) -> int:
        if self._result is None:
            return -1
        return self._result.row_count

    def execute(
        self,
        sql: str,
        parameters: Parameters | None = None,
        timeout: float | None = None,
    ) -> Cursor:
        """
        Execute a statement, substituting named parameters first.

        Args:
            sql: SQL text, optionally with placeholders such as ``@id``
            parameters: Mapping or ordered (name, value) pairs
            timeout: Overrides the configured request timeout

        Returns:
            This cursor, positioned before the first row
        """
        self._check_open()
        if parameters:
            sql = substitute_parameters(sql, parameters)

        body = self._connection._run(sql, timeout)
        engine_url = self._connection.context.engine_url
        self._result = decode_result(body, source=normalize_engine_url(engine_url) if engine_url else None)
        self._position = 0
        return self

    def execute_non_query(
        self,
        sql: str,
        parameters: Parameters | None = None,
        timeout: float | None = None,
    ) -> int:
        """Execute a statement whose rows are not needed. Always returns 0."""
        self.execute(sql, parameters, timeout=timeout)
        return 0

    def fetchone(self) -> tuple[Any, ...] | None:
        rows = self.result.rows
        if self._position >= len(rows):
            return None
        row = rows[self._position]
        self._position += 1
        return row

    def fetchmany(self, size: int | None = None) -> list[tuple[Any, ...]]:
        size = self.arraysize if size is None else size
        rows = self.result.rows[self._position:self._position + size]
        self._position += len(rows)
        return list(rows)

    def fetchall(self) -> list[tuple[Any, ...]]:
        rows = self.result.rows[self._position:]
        self._position += len(rows)
        return list(rows)

    def clear_set_list(self) -> None:
        self._connection.clear_set_list()

    def close(self) -> None:
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise InterfaceError("Cursor is closed")
        self._connection._check_open()


def connect(config: ClientConfig | None = None, **overrides: Any) -> Connection:
    """
    Open a connection.

    Usage:
        conn = connect(client_id="...", client_secret="...", database="sales",
                       engine_url="sales-engine.example.firebolt.io")
    """
    config = config or ClientConfig()
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return Connection(config)
