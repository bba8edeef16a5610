"""Unit tests for sender parsing, stop lists and corpus building."""
from __future__ import annotations

import pytest

from contact_enricher.extraction import StopLists, build_corpus, extract_email, is_stopped_number, is_stopped_sender
from contact_enricher.models import MessageRecord


@pytest.mark.parametrize(
    ("sender", "expected"),
    [
        ("Bastien V. <a@b.com>", "a@b.com"),
        ("a@b.com", "a@b.com"),
        ('"Doe, Jane" <jane.doe@mail.example.co.uk>', "jane.doe@mail.example.co.uk"),
        ("bob@other.org (Bob)", "bob@other.org"),
        ("Undisclosed recipients", None),
        ("", None),
    ],
)
def test_extract_email(sender, expected) -> None:
    assert extract_email(sender) == expected


def test_build_corpus_concatenates_in_encounter_order() -> None:
    messages = [
        MessageRecord(sender="Jane <jane@acme.com>", body="hello"),
        MessageRecord(sender="bob@other.org", body="first"),
        MessageRecord(sender="Jane Doe <jane@acme.com>", body="world"),
        MessageRecord(sender="jane@acme.com", body="again"),
    ]

    corpus = build_corpus(messages)

    assert list(corpus) == ["jane@acme.com", "bob@other.org"]
    assert corpus["jane@acme.com"] == "hello world again"
    assert corpus["bob@other.org"] == "first"


def test_build_corpus_drops_operator_domains() -> None:
    messages = [
        MessageRecord(sender="Me <me@mycorp.com>", body="My number: 06 12 34 56 78"),
        MessageRecord(sender="Assistant <pa@eu.MyCorp.com>", body="Signature 01 02 03 04 05"),
        MessageRecord(sender="client@notmycorp.com", body="Call 07 11 22 33 44"),
        MessageRecord(sender="garbage", body="ignored"),
    ]

    corpus = build_corpus(messages, ["@mycorp.com"])

    assert corpus == {"client@notmycorp.com": "Call 07 11 22 33 44"}


def test_stop_list_helpers() -> None:
    assert is_stopped_number("'06 12 34 56 78 ", ["06 12 34 56 78"])
    assert not is_stopped_number("06 12 34 56 79", ["06 12 34 56 78"])
    assert is_stopped_sender("x@sub.corp.io", ["corp.io"])
    assert not is_stopped_sender("x@corp.io.evil.com", ["corp.io"])
    assert not is_stopped_sender("not-an-address", ["corp.io"])


def test_stop_lists_merge_and_normalise() -> None:
    configured = StopLists.from_values(phones=[" +33 6 00 "], domains=["@Corp.io", ""])
    stored = StopLists.from_values(phones=["0600"], domains=["other.fr"])

    merged = configured.merged_with(stored)

    assert merged.phones == frozenset({"+33 6 00", "0600"})
    assert merged.domains == frozenset({"corp.io", "other.fr"})
