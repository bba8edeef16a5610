"""Single-field partial updates of CRM entities."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from ..config import CRMSettings
from ..extraction.phones import strip_text_marker
from ..models import CredentialChain, UpdateResult
from .base import SESSION_HEADER, ThreadLocalSessions, is_success, require_session

LOGGER = logging.getLogger(__name__)

LEAD_PHONE_FIELDS = ("phone", "mobile")


class CRMUpdater:
    """Write a phone number onto a ClientContact or a Lead. No retries."""

    def __init__(self, settings: CRMSettings, *, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._sessions = ThreadLocalSessions(session)

    def set_client_phone(self, chain: CredentialChain, client_id: int, phone: str) -> UpdateResult:
        return self._update(chain, "ClientContact", client_id, "phone", phone)

    def set_lead_field(self, chain: CredentialChain, lead_id: int, phone: str, field: str) -> UpdateResult:
        if field not in LEAD_PHONE_FIELDS:
            raise ValueError(f"Lead phone field must be one of {LEAD_PHONE_FIELDS}, got '{field}'")
        return self._update(chain, "Lead", lead_id, field, phone)

    def _update(self, chain: CredentialChain, entity: str, entity_id: int, field: str, phone: str) -> UpdateResult:
        require_session(chain)
        try:
            response = self._sessions.get().post(
                f"{chain.session_base_url}entity/{entity}/{entity_id}",
                params={SESSION_HEADER: chain.session_token},
                json={field: strip_text_marker(phone)},
                timeout=self._settings.timeout,
            )
        except requests.RequestException as exc:
            LOGGER.error("Updating %s %s failed: %s", entity, entity_id, exc)
            return UpdateResult(entity=entity, entity_id=entity_id, field=field, ok=False, error=str(exc))

        if is_success(response.status_code):
            LOGGER.info("Set %s on %s %s", field, entity, entity_id)
            return UpdateResult(entity=entity, entity_id=entity_id, field=field, ok=True, status_code=response.status_code)

        LOGGER.error("Updating %s %s answered HTTP %s", entity, entity_id, response.status_code)
        return UpdateResult(
            entity=entity,
            entity_id=entity_id,
            field=field,
            ok=False,
            status_code=response.status_code,
            error=f"HTTP {response.status_code}",
        )
