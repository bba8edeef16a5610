"""In-process staging store."""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence

from ..extraction.stop_list import StopLists
from ..models import ReconciliationOutcome, StagedContact
from .base import StoreError, email_key, index_by_email, merge_outcome, plan_new_contacts

LOGGER = logging.getLogger(__name__)


class InMemoryContactStore:
    """Staging store kept in memory, mainly for tests and embedding."""

    def __init__(
        self,
        contacts: Optional[Iterable[StagedContact]] = None,
        *,
        last_checked: Optional[date] = None,
        stop_lists: Optional[StopLists] = None,
    ) -> None:
        self._contacts: List[StagedContact] = list(contacts or [])
        self._last_checked = last_checked
        self._stop_lists = stop_lists or StopLists()

    def list_contacts(self) -> List[StagedContact]:
        return list(self._contacts)

    def pending_contacts(self) -> List[StagedContact]:
        return [contact for contact in self._contacts if contact.is_pending]

    def stage_new_contacts(self, found: Mapping[str, Sequence[str]], *, when: Optional[date] = None) -> List[StagedContact]:
        planned = plan_new_contacts(found, self._contacts, when=when)
        self._contacts.extend(planned)
        return planned

    def apply_outcomes(self, outcomes: Iterable[ReconciliationOutcome], when: date) -> int:
        indexed = index_by_email(self._contacts)
        applied = 0
        for outcome in outcomes:
            contact = indexed.get(email_key(outcome.email))
            if contact is None:
                LOGGER.warning("No staged contact for %s; status %s dropped", outcome.email, outcome.status.value)
                continue
            if merge_outcome(contact, outcome, when):
                applied += 1
        return applied

    def get_last_checked_date(self) -> date:
        if self._last_checked is None:
            raise StoreError("No last check date recorded")
        return self._last_checked

    def set_last_checked_date(self, value: date) -> None:
        self._last_checked = value

    def get_stop_lists(self) -> StopLists:
        return self._stop_lists
