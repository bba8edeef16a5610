"""Reconciliation of staged contacts against CRM ClientContacts and Leads."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Iterable, List, Optional, Sequence

from ..crm.base import AuthSessionProtocol, DirectoryProtocol, UpdaterProtocol
from ..models import (
    ContactStatus,
    CredentialChain,
    CRMContact,
    ReconciliationOutcome,
    StagedContact,
    UpdateResult,
)
from ..storage.base import ContactStagingStore

LOGGER = logging.getLogger(__name__)


class ReconciliationWorkflow:
    """Decide, per staged contact, whether and where to write its phone number.

    Precedence is fixed: a matching ClientContact always wins over a Lead, and
    on a Lead the ``phone`` field is filled before ``mobile``.  A phone number
    already on file is never overwritten.

    With ``concurrent=True`` contacts are spread over a thread pool; the CRM
    clients then open one HTTP session per worker thread.
    """

    def __init__(
        self,
        directory: DirectoryProtocol,
        updater: UpdaterProtocol,
        *,
        concurrent: bool = False,
        max_workers: Optional[int] = None,
        raise_on_error: bool = False,
    ) -> None:
        self._directory = directory
        self._updater = updater
        self._concurrent = concurrent
        self._max_workers = max_workers
        self._raise_on_error = raise_on_error

    def run(self, chain: CredentialChain, contacts: Iterable[StagedContact]) -> List[ReconciliationOutcome]:
        """Reconcile every contact and return one outcome each, in input order."""

        contacts = list(contacts)
        if not self._concurrent or len(contacts) <= 1:
            return [self._execute(chain, contact) for contact in contacts]

        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            return list(executor.map(lambda contact: self._execute(chain, contact), contacts))

    def reconcile(self, chain: CredentialChain, contact: StagedContact) -> ReconciliationOutcome:
        email, phone = contact.email, contact.phone_number
        client = self._directory.find_client_contact(chain, email)
        lead = self._directory.find_lead(chain, email)

        if client is not None:
            if client.has_primary_phone:
                return _already_a_number(email, client)
            return _from_update(email, self._updater.set_client_phone(chain, client.id, phone))

        if lead is not None:
            if not lead.has_primary_phone:
                return _from_update(email, self._updater.set_lead_field(chain, lead.id, phone, "phone"))
            if not lead.has_secondary_phone:
                return _from_update(email, self._updater.set_lead_field(chain, lead.id, phone, "mobile"))
            return _already_a_number(email, lead)

        return ReconciliationOutcome(email=email, status=ContactStatus.NOT_FOUND)

    def _execute(self, chain: CredentialChain, contact: StagedContact) -> ReconciliationOutcome:
        try:
            outcome = self.reconcile(chain, contact)
        except Exception as exc:
            LOGGER.exception("Reconciling %s failed", contact.email)
            if self._raise_on_error:
                raise
            return ReconciliationOutcome(email=contact.email, status=ContactStatus.ERROR, detail=str(exc))
        LOGGER.debug("Reconciled %s: %s", contact.email, outcome.status.value)
        return outcome


def _already_a_number(email: str, record: CRMContact) -> ReconciliationOutcome:
    return ReconciliationOutcome(
        email=email,
        status=ContactStatus.ALREADY_A_NUMBER,
        entity=record.entity,
        entity_id=record.id,
    )


def _from_update(email: str, result: UpdateResult) -> ReconciliationOutcome:
    return ReconciliationOutcome(
        email=email,
        status=ContactStatus.UPDATED if result.ok else ContactStatus.ERROR,
        entity=result.entity,
        entity_id=result.entity_id,
        field=result.field,
        detail=result.error or "",
    )


def reconcile_pending(
    store: ContactStagingStore,
    auth: AuthSessionProtocol,
    workflow: ReconciliationWorkflow,
    *,
    today: Optional[date] = None,
) -> List[ReconciliationOutcome]:
    """Reconcile every pending contact of ``store`` and record the statuses.

    Authentication happens first; an :class:`~contact_enricher.crm.AuthError`
    propagates before any contact is touched.
    """

    today = today or date.today()
    pending: Sequence[StagedContact] = store.pending_contacts()
    if not pending:
        LOGGER.info("No pending contacts to reconcile")
        return []

    chain = auth.acquire()
    outcomes = workflow.run(chain, pending)
    applied = store.apply_outcomes(outcomes, today)
    LOGGER.info("Reconciled %s contacts, %s statuses recorded", len(outcomes), applied)
    return outcomes
