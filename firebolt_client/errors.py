"""Exceptions raised by the firebolt client."""

from __future__ import annotations


class FireboltError(Exception):
    """Base exception for firebolt client errors."""
    pass


class AuthError(FireboltError):
    """Login failed, or the request stayed unauthorized after re-authenticating."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class ServerError(FireboltError):
    """The engine answered with a non-success status other than 401."""

    def __init__(self, status_code: int, body: str, url: str):
        super().__init__(f"Request to {url} failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body
        self.url = url


class QueryError(FireboltError):
    """Transport-level failure: connection refused, timeout, broken framing."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class UnsupportedParameterError(FireboltError):
    """A parameter value has no SQL literal form."""
    pass


class ParameterError(FireboltError):
    """A bind parameter could not be encoded."""

    def __init__(self, message: str, parameter_name: str):
        super().__init__(message)
        self.parameter_name = parameter_name


class DecodeError(FireboltError):
    """A response body did not have the expected shape."""
    pass


class InterfaceError(FireboltError):
    """Connection or cursor used in an invalid state."""
    pass
