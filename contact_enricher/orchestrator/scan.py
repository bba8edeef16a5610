"""Mail scan job: mine phone numbers from recent correspondence and stage them."""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, List, Optional

from ..extraction.corpus import build_corpus
from ..extraction.phones import extract_phone_numbers
from ..extraction.stop_list import StopLists
from ..inbox import DateRange, Mailbox
from ..models import ScanSummary
from ..storage.base import ContactStagingStore, StoreError

LOGGER = logging.getLogger(__name__)


class ScanJob:
    """Scan the mailbox since the last checkpoint and stage new contacts.

    ``stop_lists`` are merged with the lists held by the store, so operators can
    keep them either in configuration or next to the staged contacts.
    """

    def __init__(
        self,
        mailbox: Mailbox,
        store: ContactStagingStore,
        *,
        stop_lists: Optional[StopLists] = None,
    ) -> None:
        self._mailbox = mailbox
        self._store = store
        self._stop_lists = stop_lists or StopLists()

    def run(self, *, today: Optional[date] = None, since: Optional[date] = None) -> ScanSummary:
        today = today or date.today()
        after = since or self._store.get_last_checked_date()
        if after > today:
            raise StoreError(f"Scan would start on {after}, after today ({today})")
        date_range = DateRange(after=after, before=today)
        stop_lists = self._stop_lists.merged_with(self._store.get_stop_lists())

        messages = self._mailbox.search(date_range)
        corpus = build_corpus(messages, stop_lists.domains)
        numbers = mine_numbers(corpus, stop_lists)

        staged = self._store.stage_new_contacts(numbers, when=today)
        self._store.set_last_checked_date(today)

        summary = ScanSummary(
            after=after,
            before=today,
            messages_seen=len(messages),
            senders_kept=len(corpus),
            senders_with_numbers=sum(1 for found in numbers.values() if found),
            staged=staged,
        )
        LOGGER.info(
            "Scanned %s messages from %s senders (%s), staged %s contacts",
            summary.messages_seen,
            summary.senders_kept,
            date_range.as_query(),
            summary.staged_count,
        )
        return summary


def mine_numbers(corpus: Dict[str, str], stop_lists: StopLists) -> Dict[str, List[str]]:
    """Extract phone numbers per sender from a corpus built by :func:`build_corpus`."""

    return {email: extract_phone_numbers(str(text), stop_lists.phones) for email, text in corpus.items()}
