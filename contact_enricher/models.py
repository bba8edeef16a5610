"""Data models shared by the mail scan, staging store and CRM reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union

PERFECT_SCORE = 1.0


class ContactStatus(str, Enum):
    """Lifecycle of a staged contact. ``waiting`` is the only non-terminal state."""

    WAITING = "waiting"
    UPDATED = "updated"
    ALREADY_A_NUMBER = "already a number"
    NOT_FOUND = "not found"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Any) -> "ContactStatus":
        text = str(value or "").strip().lower()
        for status in cls:
            if status.value == text:
                return status
        raise ValueError(f"Unknown contact status '{value}'")

    @property
    def is_terminal(self) -> bool:
        return self is not ContactStatus.WAITING


RESOLVED_STATUSES = frozenset({ContactStatus.UPDATED, ContactStatus.ALREADY_A_NUMBER})


# --- Mailbox ---

@dataclass(slots=True)
class MessageRecord:
    """A raw message as returned by the mailbox: sender header and plain body."""

    sender: str
    body: str


# --- Staging ---

@dataclass(slots=True)
class StagedContact:
    """An (email, phone) pair awaiting or having gone through CRM reconciliation."""

    email: str
    phone_number: str
    status: ContactStatus = ContactStatus.WAITING
    last_status_update: Optional[date] = None

    @property
    def is_pending(self) -> bool:
        return self.status is ContactStatus.WAITING


# --- CRM ---

@dataclass(frozen=True)
class CredentialChain:
    """Tokens obtained from the CRM, one stage after another.

    ``auth_code`` comes from the login redirect, the access/refresh pair from the
    token exchange and the session token plus base url from the REST login.
    """

    auth_code: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    session_token: Optional[str] = None
    session_base_url: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.session_token and self.session_base_url)

    def with_access(self, access_token: str, refresh_token: Optional[str]) -> "CredentialChain":
        return replace(self, access_token=access_token, refresh_token=refresh_token)

    def with_session(self, session_token: str, session_base_url: str) -> "CredentialChain":
        return replace(self, session_token=session_token, session_base_url=session_base_url)

    def __repr__(self) -> str:
        populated = [name for name in ("auth_code", "access_token", "refresh_token", "session_token") if getattr(self, name)]
        return f"CredentialChain(populated={populated}, session_base_url={self.session_base_url!r})"


@dataclass(slots=True)
class ClientContactRecord:
    """A ClientContact search hit. Only the primary ``phone`` slot exists."""

    entity = "ClientContact"

    id: int
    email: Optional[str] = None
    phone: Optional[str] = None
    score: float = 0.0

    @property
    def has_primary_phone(self) -> bool:
        return bool(self.phone)

    @property
    def has_secondary_phone(self) -> bool:
        return False

    @property
    def is_perfect_match(self) -> bool:
        return self.score == PERFECT_SCORE


@dataclass(slots=True)
class LeadRecord:
    """A Lead search hit with a primary ``phone`` and a secondary ``mobile`` slot."""

    entity = "Lead"

    id: int
    email: Optional[str] = None
    phone: Optional[str] = None
    mobile: Optional[str] = None
    score: float = 0.0

    @property
    def has_primary_phone(self) -> bool:
        return bool(self.phone)

    @property
    def has_secondary_phone(self) -> bool:
        return bool(self.mobile)

    @property
    def is_perfect_match(self) -> bool:
        return self.score == PERFECT_SCORE


CRMContact = Union[ClientContactRecord, LeadRecord]


@dataclass(slots=True)
class UpdateResult:
    """Outcome of a single-field partial update on a CRM entity."""

    entity: str
    entity_id: int
    field: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


# --- Workflow outputs ---

@dataclass(slots=True)
class ReconciliationOutcome:
    """Status computed for one staged contact during a reconciliation run."""

    email: str
    status: ContactStatus
    entity: Optional[str] = None
    entity_id: Optional[int] = None
    field: Optional[str] = None
    detail: str = ""

    def as_row(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "status": self.status.value,
            "entity": self.entity or "",
            "entity_id": self.entity_id if self.entity_id is not None else "",
            "field": self.field or "",
            "detail": self.detail,
        }


@dataclass
class ScanSummary:
    """What a single mail scan did."""

    after: date
    before: date
    messages_seen: int = 0
    senders_kept: int = 0
    senders_with_numbers: int = 0
    staged: List[StagedContact] = field(default_factory=list)

    @property
    def staged_count(self) -> int:
        return len(self.staged)
