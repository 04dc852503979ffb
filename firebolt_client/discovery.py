"""Account and engine lookups against the control-plane API."""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING
from urllib.parse import quote

from .errors import DecodeError

if TYPE_CHECKING:
    from .config import ClientConfig
    from .executor import QueryExecutor

logger = logging.getLogger(__name__)


def _field(data: Any, url: str, *keys: str) -> str:
    """Walk nested keys of a JSON record, failing with the endpoint name."""
    value = data
    for key in keys:
        if not isinstance(value, dict) or not value.get(key):
            raise DecodeError(f"Response from {url} has no {'.'.join(keys)!r}")
        value = value[key]
    return str(value)


class EngineDiscovery:
    """
    Resolves account and engine names to the ids and URLs queries need.

    Every lookup is an authorized GET returning a small JSON record. A
    ``timeout`` given to a lookup covers its GETs and any login they need.
    """

    def __init__(self, executor: QueryExecutor, config: ClientConfig):
        self._executor = executor
        self._config = config

    @property
    def base_url(self) -> str:
        return self._config.api_endpoint.rstrip("/")

    def account_id_by_name(self, account_name: str, timeout: float | None = None) -> str:
        url = f"{self.base_url}/iam/v2/accounts:getIdByName"
        data = self._executor.get_json(url, params={"accountName": account_name}, timeout=timeout)
        account_id = _field(data, url, "account_id")
        logger.debug(f"Account {account_name!r} resolved to {account_id}")
        return account_id

    def engine_url_by_name(
        self, engine_name: str, account_id: str, timeout: float | None = None
    ) -> str:
        engines_url = f"{self.base_url}/core/v1/accounts/{quote(account_id, safe='')}/engines"

        id_url = f"{engines_url}:getIdByName"
        data = self._executor.get_json(id_url, params={"engine_name": engine_name}, timeout=timeout)
        engine_id = _field(data, id_url, "engine_id", "engine_id")

        engine_url = f"{engines_url}/{quote(engine_id, safe='')}"
        data = self._executor.get_json(engine_url, timeout=timeout)
        endpoint = _field(data, engine_url, "engine", "endpoint")
        logger.debug(f"Engine {engine_name!r} resolved to {endpoint}")
        return endpoint

    def engine_url_by_database(
        self, database: str, account_id: str | None = None, timeout: float | None = None
    ) -> str:
        if account_id:
            url = (
                f"{self.base_url}/core/v1/accounts/{quote(account_id, safe='')}"
                "/engines:getURLByDatabaseName"
            )
        else:
            url = f"{self.base_url}/core/v1/account/engines:getURLByDatabaseName"
        data = self._executor.get_json(url, params={"database_name": database}, timeout=timeout)
        endpoint = _field(data, url, "engine_url")
        logger.debug(f"Database {database!r} served by {endpoint}")
        return endpoint
