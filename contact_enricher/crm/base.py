"""Shared plumbing for the Bullhorn REST clients."""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Protocol

import requests

from ..models import CredentialChain, CRMContact, UpdateResult

SESSION_HEADER = "BhRestToken"


class AuthError(RuntimeError):
    """Raised when a usable CRM session cannot be obtained."""


class SearchFailure(RuntimeError):
    """Raised internally when an entity search cannot be completed."""


def is_success(status_code: Optional[int]) -> bool:
    return status_code is not None and status_code // 100 == 2


def parse_json(response: requests.Response, error_cls: type[Exception]) -> Dict[str, Any]:
    """Decode a JSON object body or raise ``error_cls``."""

    try:
        payload = response.json()
    except ValueError as exc:
        raise error_cls(f"Malformed JSON in response (HTTP {response.status_code})") from exc
    if not isinstance(payload, dict):
        raise error_cls(f"Unexpected JSON payload type {type(payload).__name__}")
    return payload


def require_session(chain: CredentialChain) -> None:
    if not chain.is_complete:
        raise AuthError("Credential chain has no session token")


class ThreadLocalSessions:
    """Hand out one :class:`requests.Session` per thread.

    A session passed in explicitly is shared by every thread instead.
    """

    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self._shared = session
        self._local = threading.local()

    def get(self) -> requests.Session:
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session


class AuthSessionProtocol(Protocol):
    def acquire(self) -> CredentialChain:  # pragma: no cover - runtime protocol
        """Return a fully built credential chain or raise :class:`AuthError`."""


class DirectoryProtocol(Protocol):
    def find_client_contact(self, chain: CredentialChain, email: str) -> Optional[CRMContact]:  # pragma: no cover
        ...

    def find_lead(self, chain: CredentialChain, email: str) -> Optional[CRMContact]:  # pragma: no cover
        ...


class UpdaterProtocol(Protocol):
    def set_client_phone(self, chain: CredentialChain, client_id: int, phone: str) -> UpdateResult:  # pragma: no cover
        ...

    def set_lead_field(
        self, chain: CredentialChain, lead_id: int, phone: str, field: str
    ) -> UpdateResult:  # pragma: no cover
        ...
