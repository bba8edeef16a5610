"""Bullhorn authentication: login redirect, token exchange and REST login."""
from __future__ import annotations

import itertools
import logging
import re
import time
from typing import Callable, Optional
from urllib.parse import unquote

import requests

from ..config import CRMSettings
from ..models import CredentialChain
from .base import SESSION_HEADER, AuthError, is_success, parse_json

LOGGER = logging.getLogger(__name__)

_CODE_PATTERN = re.compile(r"code=([\w%\-]+)")


class _LoginAttemptFailed(RuntimeError):
    pass


class CRMAuthSession:
    """Acquire a :class:`CredentialChain` for the configured API user.

    Every stage needs the field produced by the previous one.  The REST login is
    known to answer with intermittent server errors, so it is retried; the bound
    comes from :attr:`CRMSettings.login_max_attempts` and ``None`` retries until
    the call succeeds.
    """

    def __init__(
        self,
        settings: CRMSettings,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._sleep = sleep

    def acquire(self) -> CredentialChain:
        chain = self.request_auth_code()
        chain = self.exchange_code(chain)
        chain = self.open_rest_session(chain)
        LOGGER.info("CRM session established at %s", chain.session_base_url)
        return chain

    # ------------------------------------------------------------------
    # Stages
    def request_auth_code(self) -> CredentialChain:
        settings = self._settings
        params = {
            "client_id": settings.client_id,
            "response_type": "code",
            "action": "Login",
            "username": settings.username,
            "password": settings.password,
        }
        try:
            response = self._session.get(
                f"{settings.auth_url}authorize",
                params=params,
                allow_redirects=False,
                timeout=settings.timeout,
            )
        except requests.RequestException as exc:
            raise AuthError("no redirect code") from exc

        location = response.headers.get("Location") or ""
        match = _CODE_PATTERN.search(location)
        if not match:
            LOGGER.error("Authorize call answered HTTP %s without a redirect code", response.status_code)
            raise AuthError("no redirect code")
        return CredentialChain(auth_code=unquote(match.group(1)))

    def exchange_code(self, chain: CredentialChain) -> CredentialChain:
        if not chain.auth_code:
            raise AuthError("Cannot exchange tokens without an authorization code")

        settings = self._settings
        params = {
            "grant_type": "authorization_code",
            "code": chain.auth_code,
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
        }
        try:
            response = self._session.post(f"{settings.auth_url}token", params=params, timeout=settings.timeout)
            payload = parse_json(response, AuthError)
        except (requests.RequestException, AuthError) as exc:
            raise AuthError("token exchange failed") from exc

        access_token = payload.get("access_token")
        if not access_token:
            LOGGER.error("Token endpoint answered HTTP %s without an access token", response.status_code)
            raise AuthError("token exchange failed")
        return chain.with_access(str(access_token), payload.get("refresh_token"))

    def open_rest_session(self, chain: CredentialChain) -> CredentialChain:
        if not chain.access_token:
            raise AuthError("Cannot open a REST session without an access token")

        max_attempts = self._settings.login_max_attempts
        if max_attempts is None:
            LOGGER.warning("REST login retries are unbounded; the run blocks until the CRM answers")
            attempts = itertools.count(1)
        else:
            attempts = iter(range(1, max_attempts + 1))

        for attempt in attempts:
            try:
                return self._rest_login(chain)
            except (requests.RequestException, _LoginAttemptFailed) as exc:
                LOGGER.warning("REST login attempt %s failed: %s", attempt, exc)
            if max_attempts is not None and attempt >= max_attempts:
                break
            if self._settings.login_retry_delay > 0:
                self._sleep(self._settings.login_retry_delay)

        raise AuthError("session login failed")

    def _rest_login(self, chain: CredentialChain) -> CredentialChain:
        settings = self._settings
        response = self._session.post(
            f"{settings.rest_login_url}login",
            params={"version": "*", "access_token": chain.access_token},
            timeout=settings.timeout,
        )
        if not is_success(response.status_code):
            raise _LoginAttemptFailed(f"HTTP {response.status_code}")
        payload = parse_json(response, _LoginAttemptFailed)
        session_token = payload.get(SESSION_HEADER)
        rest_url = payload.get("restUrl")
        if not session_token or not rest_url:
            raise _LoginAttemptFailed("login response is missing BhRestToken or restUrl")
        if not str(rest_url).endswith("/"):
            rest_url = f"{rest_url}/"
        return chain.with_session(str(session_token), str(rest_url))
