"""Contract and shared rules for the contact staging store."""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from ..extraction.stop_list import StopLists
from ..models import ContactStatus, ReconciliationOutcome, StagedContact

LOGGER = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the staging store is missing data or holds malformed rows."""


def email_key(email: str) -> str:
    return str(email).strip().lower()


class ContactStagingStore(Protocol):
    """Keyed (email → staged contact) store plus the scan checkpoint."""

    def list_contacts(self) -> List[StagedContact]:  # pragma: no cover - runtime protocol
        ...

    def pending_contacts(self) -> List[StagedContact]:  # pragma: no cover
        ...

    def stage_new_contacts(self, found: Mapping[str, Sequence[str]], *, when: Optional[date] = None) -> List[StagedContact]:  # pragma: no cover
        ...

    def apply_outcomes(self, outcomes: Iterable[ReconciliationOutcome], when: date) -> int:  # pragma: no cover
        ...

    def get_last_checked_date(self) -> date:  # pragma: no cover
        ...

    def set_last_checked_date(self, value: date) -> None:  # pragma: no cover
        ...

    def get_stop_lists(self) -> StopLists:  # pragma: no cover
        ...


def plan_new_contacts(
    found: Mapping[str, Sequence[str]],
    existing: Iterable[StagedContact],
    *,
    when: Optional[date] = None,
) -> List[StagedContact]:
    """Return the contacts to append for a scan result.

    Only the first number found for an email is staged.  Emails already known
    to the store are skipped whatever their status: pending ones are unique in
    the pending set and terminal ones never go back to ``waiting``.
    """

    known = {email_key(contact.email) for contact in existing}
    planned: List[StagedContact] = []
    for email, numbers in found.items():
        if not numbers:
            continue
        key = email_key(email)
        if not key or key in known:
            continue
        known.add(key)
        planned.append(StagedContact(email=email.strip(), phone_number=numbers[0], last_status_update=when))
    return planned


def merge_outcome(contact: StagedContact, outcome: ReconciliationOutcome, when: date) -> bool:
    """Apply ``outcome`` to ``contact`` if the contact is still pending."""

    if not contact.is_pending:
        LOGGER.warning(
            "Ignoring %s status for %s: contact already %s",
            outcome.status.value,
            contact.email,
            contact.status.value,
        )
        return False
    if outcome.status is ContactStatus.WAITING:
        return False
    contact.status = outcome.status
    contact.last_status_update = when
    return True


def index_by_email(contacts: Iterable[StagedContact]) -> Dict[str, StagedContact]:
    return {email_key(contact.email): contact for contact in contacts}
