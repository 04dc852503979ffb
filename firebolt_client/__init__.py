"""Firebolt client - authenticated SQL execution over HTTP."""

from .auth import AuthSession, Credential
from .config import ClientConfig
from .connection import Connection, Cursor, connect
from .discovery import EngineDiscovery
from .errors import (
    AuthError,
    DecodeError,
    FireboltError,
    InterfaceError,
    ParameterError,
    QueryError,
    ServerError,
    UnsupportedParameterError,
)
from .executor import ConnectionContext, QueryExecutor
from .parameters import encode_parameter, substitute_parameters
from .results import Column, QueryResult, decode_result
from .session import SessionState

__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "AuthSession",
    "ClientConfig",
    "Column",
    "Connection",
    "ConnectionContext",
    "Credential",
    "Cursor",
    "DecodeError",
    "EngineDiscovery",
    "FireboltError",
    "InterfaceError",
    "ParameterError",
    "QueryError",
    "QueryExecutor",
    "QueryResult",
    "ServerError",
    "SessionState",
    "UnsupportedParameterError",
    "connect",
    "decode_result",
    "encode_parameter",
    "substitute_parameters",
]
