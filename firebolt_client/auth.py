"""Authentication session: obtains, caches and refreshes the bearer credential."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING

import httpx

from .errors import AuthError, QueryError

if TYPE_CHECKING:
    from .config import ClientConfig

logger = logging.getLogger(__name__)

LOGIN_PATH = "/oauth/token"


@dataclass(frozen=True)
class Credential:
    """Bearer token returned by a login, with its absolute expiry (epoch seconds)."""
    token: str
    token_type: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type} {self.token}"


@dataclass
class AuthSession:
    """
    Owns the credential lifecycle for one connection.

    The cached credential is returned while it is unexpired. An absent,
    expired or invalidated credential triggers a login. The cache is guarded
    by a lock held across check-and-login, so concurrent callers on one
    connection cause at most one login request.

    Usage:
        session = AuthSession(config)
        credential = session.get_valid_token()
        headers = {"Authorization": credential.authorization_header}
    """
    config: ClientConfig
    clock: Callable[[], float] = time.time

    _credential: Credential | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def login_url(self) -> str:
        return f"{self.config.auth_url.rstrip('/')}{LOGIN_PATH}"

    def get_valid_token(self, timeout: float | None = None) -> Credential:
        """
        Return a credential that is valid now, logging in if needed.

        ``timeout`` overrides the configured timeout for the login request.

        Raises:
            AuthError: Login rejected or login response malformed
            QueryError: Login request could not be sent
        """
        with self._lock:
            credential = self._credential
            if credential is not None and credential.is_valid(self.clock()):
                logger.debug("Using cached access token")
                return credential

            credential = self._login(timeout)
            self._credential = credential
            return credential

    def invalidate(self, credential: Credential | None = None) -> None:
        """
        Drop the cached credential so the next call logs in again.

        When ``credential`` is given, the cache is only dropped if it still
        holds that credential; a token refreshed meanwhile by another caller
        is kept.
        """
        with self._lock:
            if credential is None or self._credential is credential:
                self._credential = None
                logger.debug("Access token invalidated")

    def _login(self, timeout: float | None = None) -> Credential:
        url = self.login_url
        if not self.config.client_id or not self.config.client_secret:
            raise AuthError(f"Client id and client secret are required to log in to {url}", url=url)

        form = {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
        }
        if self.config.audience:
            form["audience"] = self.config.audience

        logger.info(f"Logging in to {url}")
        try:
            with httpx.Client(timeout=self.config.timeout if timeout is None else timeout) as client:
                response = client.post(url, data=form)
        except httpx.TransportError as e:
            raise QueryError(f"Login request to {url} failed: {e}", url=url) from e

        if response.status_code in (401, 403):
            raise AuthError(
                f"The operation is unauthorized. Login to {url} returned "
                f"{response.status_code}: {response.text}",
                url=url,
                status_code=response.status_code,
                body=response.text,
            )
        if not response.is_success:
            raise AuthError(
                f"Login to {url} failed with status {response.status_code}: {response.text}",
                url=url,
                status_code=response.status_code,
                body=response.text,
            )

        return self._parse_login_response(response, url)

    def _parse_login_response(self, response: httpx.Response, url: str) -> Credential:
        try:
            data: Any = response.json()
        except ValueError as e:
            raise AuthError(f"Malformed login response from {url}: not JSON", url=url,
                            status_code=response.status_code, body=response.text) from e

        if not isinstance(data, dict) or not data.get("access_token"):
            raise AuthError(f"Malformed login response from {url}: missing access_token", url=url,
                            status_code=response.status_code, body=response.text)

        try:
            expires_in = float(data.get("expires_in"))
        except (TypeError, ValueError) as e:
            raise AuthError(
                f"Malformed login response from {url}: invalid expires_in {data.get('expires_in')!r}",
                url=url,
                status_code=response.status_code,
                body=response.text,
            ) from e

        return Credential(
            token=str(data["access_token"]),
            token_type=str(data.get("token_type") or "Bearer"),
            expires_at=self.clock() + expires_in,
        )
