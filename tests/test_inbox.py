"""Tests for the scan date range and the Maildir reader."""
from __future__ import annotations

import mailbox
from datetime import date, datetime, timezone
from email.message import EmailMessage
from email.utils import format_datetime

import pytest

from contact_enricher.inbox import DateRange, MaildirMailbox, format_checkpoint_date, parse_checkpoint_date


def test_date_range_query_has_no_zero_padding() -> None:
    date_range = DateRange(after=date(2022, 2, 6), before=date(2022, 12, 10))

    assert date_range.as_query() == "after:2022/2/6 before:2022/12/10"
    assert date_range.contains(date(2022, 2, 6))
    assert not date_range.contains(date(2022, 12, 10))


def test_date_range_rejects_reversed_bounds() -> None:
    with pytest.raises(ValueError):
        DateRange(after=date(2022, 2, 10), before=date(2022, 2, 6))


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2022/2/6", date(2022, 2, 6)),
        (" 2022-02-06 ", date(2022, 2, 6)),
        (datetime(2022, 2, 6, 13, 30), date(2022, 2, 6)),
        (date(2022, 2, 6), date(2022, 2, 6)),
        (None, None),
        ("", None),
    ],
)
def test_parse_checkpoint_date(value, expected) -> None:
    assert parse_checkpoint_date(value) == expected


def test_parse_checkpoint_date_rejects_other_formats() -> None:
    with pytest.raises(ValueError):
        parse_checkpoint_date("6 Feb 2022")


def test_format_checkpoint_date() -> None:
    assert format_checkpoint_date(date(2022, 2, 6)) == "2022/2/6"


def _message(sender: str, sent: datetime, plain: str | None = None, html: str | None = None) -> EmailMessage:
    message = EmailMessage()
    message["From"] = sender
    message["To"] = "me@mycorp.com"
    message["Subject"] = "Hello"
    message["Date"] = format_datetime(sent)
    if plain is not None:
        message.set_content(plain)
        if html is not None:
            message.add_alternative(html, subtype="html")
    else:
        message.set_content(html or "", subtype="html")
    return message


@pytest.fixture
def maildir(tmp_path):
    path = tmp_path / "Maildir"
    box = mailbox.Maildir(path, create=True)
    box.add(_message("Jane <jane@example.com>", datetime(2022, 2, 7, 9, 0, tzinfo=timezone.utc), plain="Call 06 12 34 56 78"))
    box.add(
        _message(
            "bob@example.org",
            datetime(2022, 2, 8, 9, 0, tzinfo=timezone.utc),
            html="<p>My mobile: <b>07 11 22 33 44</b></p>",
        )
    )
    box.add(
        _message(
            "both@example.org",
            datetime(2022, 2, 9, 9, 0, tzinfo=timezone.utc),
            plain="Plain wins",
            html="<p>Html loses</p>",
        )
    )
    box.add(_message("old@example.com", datetime(2022, 1, 1, 9, 0, tzinfo=timezone.utc), plain="Too old"))
    box.add(_message("late@example.com", datetime(2022, 2, 10, 9, 0, tzinfo=timezone.utc), plain="Too late"))
    box.close()
    return path


def test_maildir_search_keeps_messages_in_range(maildir) -> None:
    records = MaildirMailbox(maildir).search(DateRange(after=date(2022, 2, 6), before=date(2022, 2, 10)))

    bodies = {record.sender: " ".join(record.body.split()) for record in records}
    assert bodies == {
        "Jane <jane@example.com>": "Call 06 12 34 56 78",
        "bob@example.org": "My mobile: 07 11 22 33 44",
        "both@example.org": "Plain wins",
    }


def test_missing_maildir_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        MaildirMailbox(tmp_path / "absent").search(DateRange(after=date(2022, 2, 6), before=date(2022, 2, 10)))


def test_unreadable_message_is_skipped(tmp_path) -> None:
    path = tmp_path / "Maildir"
    box = mailbox.Maildir(path, create=True)
    box.add(_message("Jane <jane@example.com>", datetime(2022, 2, 7, 9, 0, tzinfo=timezone.utc), plain="Call 06 12 34 56 78"))
    box.add(
        b"From: broken@example.com\n"
        b"Date: Tue, 08 Feb 2022 09:00:00 +0000\n"
        b"Content-Type: text/plain; charset=x-bogus-charset\n"
        b"\n"
        b"Call 07 11 22 33 44\n"
    )
    box.close()

    records = MaildirMailbox(path).search(DateRange(after=date(2022, 2, 6), before=date(2022, 2, 10)))

    assert [record.sender for record in records] == ["Jane <jane@example.com>"]
