"""Entity search against the CRM, keeping only exact email matches."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

import requests

from ..config import CRMSettings
from ..models import ClientContactRecord, CredentialChain, CRMContact, LeadRecord
from .base import SESSION_HEADER, SearchFailure, ThreadLocalSessions, is_success, parse_json, require_session

LOGGER = logging.getLogger(__name__)

CLIENT_CONTACT_FIELDS = ("id", "email", "phone")
LEAD_FIELDS = ("id", "email", "phone", "mobile")

RecordT = TypeVar("RecordT", ClientContactRecord, LeadRecord)


def select_perfect_match(candidates: Iterable[RecordT]) -> Optional[RecordT]:
    """Return the first candidate with a perfect score, or ``None``."""

    for candidate in candidates:
        if candidate.is_perfect_match:
            return candidate
    return None


def _client_contact_from_row(row: Dict[str, Any]) -> ClientContactRecord:
    return ClientContactRecord(
        id=int(row["id"]),
        email=row.get("email"),
        phone=row.get("phone"),
        score=float(row.get("_score") or 0.0),
    )


def _lead_from_row(row: Dict[str, Any]) -> LeadRecord:
    return LeadRecord(
        id=int(row["id"]),
        email=row.get("email"),
        phone=row.get("phone"),
        mobile=row.get("mobile"),
        score=float(row.get("_score") or 0.0),
    )


class CRMDirectory:
    """Look up ClientContacts and Leads by email.

    Search failures are logged and reported as "no match" so a transient error
    on one contact does not hold up the others.
    """

    def __init__(self, settings: CRMSettings, *, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._sessions = ThreadLocalSessions(session)

    def find_client_contact(self, chain: CredentialChain, email: str) -> Optional[CRMContact]:
        return self._find("ClientContact", CLIENT_CONTACT_FIELDS, _client_contact_from_row, chain, email)

    def find_lead(self, chain: CredentialChain, email: str) -> Optional[CRMContact]:
        return self._find("Lead", LEAD_FIELDS, _lead_from_row, chain, email)

    def _find(
        self,
        entity: str,
        fields: Iterable[str],
        parse_row: Callable[[Dict[str, Any]], RecordT],
        chain: CredentialChain,
        email: str,
    ) -> Optional[RecordT]:
        require_session(chain)
        try:
            candidates = self._search(entity, fields, parse_row, chain, email)
        except (requests.RequestException, SearchFailure) as exc:
            LOGGER.warning("%s search for %s failed: %s", entity, email, exc)
            return None

        match = select_perfect_match(candidates)
        if match is None:
            LOGGER.debug("No exact %s match for %s among %s candidates", entity, email, len(candidates))
        return match

    def _search(
        self,
        entity: str,
        fields: Iterable[str],
        parse_row: Callable[[Dict[str, Any]], RecordT],
        chain: CredentialChain,
        email: str,
    ) -> List[RecordT]:
        response = self._sessions.get().get(
            f"{chain.session_base_url}search/{entity}",
            params={
                "query": f"email:{email}",
                "count": self._settings.search_count,
                "fields": ",".join(fields),
            },
            headers={SESSION_HEADER: chain.session_token},
            timeout=self._settings.timeout,
        )
        if not is_success(response.status_code):
            raise SearchFailure(f"HTTP {response.status_code}")

        payload = parse_json(response, SearchFailure)
        rows = payload.get("data")
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise SearchFailure("search response 'data' is not a list")

        try:
            return [parse_row(row) for row in rows]
        except (KeyError, TypeError, ValueError) as exc:
            raise SearchFailure(f"unreadable {entity} candidate: {exc}") from exc
