"""Persistence for staged contacts and the mail scan checkpoint."""

from .base import ContactStagingStore, StoreError, merge_outcome, plan_new_contacts
from .memory import InMemoryContactStore
from .workbook import CONTACT_HEADERS, WorkbookContactStore

__all__ = [
    "CONTACT_HEADERS",
    "ContactStagingStore",
    "InMemoryContactStore",
    "StoreError",
    "WorkbookContactStore",
    "merge_outcome",
    "plan_new_contacts",
]
