"""Mailbox access: the scan date range and a Maildir reader."""
from __future__ import annotations

import logging
import mailbox
import re
from dataclasses import dataclass
from datetime import date, datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, List, Optional, Protocol

from .models import MessageRecord

LOGGER = logging.getLogger(__name__)

_CHECKPOINT_PATTERN = re.compile(r"^\s*(\d{4})[/-](\d{1,2})[/-](\d{1,2})\s*$")
_TAG_PATTERN = re.compile(r"<[^>]+>")


def format_checkpoint_date(value: date) -> str:
    """Format ``value`` as ``yyyy/m/d`` without zero padding."""

    return f"{value.year}/{value.month}/{value.day}"


def parse_checkpoint_date(value: Any) -> Optional[date]:
    """Read a checkpoint stored as a date, datetime or ``yyyy/m/d`` string."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = _CHECKPOINT_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Unrecognised checkpoint date '{value}'")
    year, month, day = (int(part) for part in match.groups())
    return date(year, month, day)


@dataclass(frozen=True)
class DateRange:
    """Half-open ``[after, before)`` range of days to scan."""

    after: date
    before: date

    def __post_init__(self) -> None:
        if self.before < self.after:
            raise ValueError(f"Date range ends ({self.before}) before it starts ({self.after})")

    def as_query(self) -> str:
        return f"after:{format_checkpoint_date(self.after)} before:{format_checkpoint_date(self.before)}"

    def contains(self, value: date) -> bool:
        return self.after <= value < self.before


class Mailbox(Protocol):
    def search(self, date_range: DateRange) -> List[MessageRecord]:  # pragma: no cover - runtime protocol
        """Return every message sent or received in ``date_range``."""


class MaildirMailbox:
    """Read messages from a local Maildir (``cur/`` and ``new/``)."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def search(self, date_range: DateRange) -> List[MessageRecord]:
        if not self._path.exists():
            raise FileNotFoundError(f"Maildir '{self._path}' does not exist")

        box = mailbox.Maildir(self._path, factory=None, create=False)
        records: List[MessageRecord] = []
        skipped = 0
        failed = 0
        for key in box.iterkeys():
            try:
                with box.get_file(key) as handle:
                    message = _parse_bytes(handle.read())
                sent = _message_date(message)
                if sent is None or not date_range.contains(sent):
                    skipped += 1
                    continue
                record = MessageRecord(sender=str(message.get("From", "")), body=_plain_body(message))
            except Exception as exc:
                failed += 1
                LOGGER.warning(
                    "Skipping unreadable message %s: %s",
                    key,
                    exc,
                    exc_info=LOGGER.isEnabledFor(logging.DEBUG),
                )
                continue
            records.append(record)
        LOGGER.info(
            "Read %s messages for %s (%s outside the range, %s unreadable)",
            len(records),
            date_range.as_query(),
            skipped,
            failed,
        )
        return records


def _parse_bytes(raw: bytes) -> EmailMessage:
    return BytesParser(policy=policy.default).parsebytes(raw)


def _message_date(message: EmailMessage) -> Optional[date]:
    header = message.get("Date")
    if not header:
        return None
    try:
        return parsedate_to_datetime(str(header)).date()
    except (TypeError, ValueError):
        LOGGER.debug("Unparseable Date header %r", header)
        return None


def _plain_body(message: EmailMessage) -> str:
    part = message.get_body(preferencelist=("plain",))
    if part is not None:
        return part.get_content().strip()
    part = message.get_body(preferencelist=("html",))
    if part is not None:
        return _TAG_PATTERN.sub(" ", part.get_content()).strip()
    return ""
