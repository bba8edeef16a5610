"""Group mailbox messages into one text blob per sender."""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, Optional

from ..models import MessageRecord
from .stop_list import is_stopped_sender

LOGGER = logging.getLogger(__name__)

_ANGLE_ADDRESS = re.compile(r"<([^<>]+)>")
_LOOSE_ADDRESS = re.compile(r"[^\s<>\"',;]+@[\w-]+(?:\.[\w-]+)+")


def extract_email(sender: str) -> Optional[str]:
    """Return the bare address from a ``From`` header.

    ``"Jane Doe <jane@example.com>"`` yields the bracketed address, a bare
    ``jane@example.com`` yields the first token that looks like an address.
    """

    if not sender:
        return None
    if "<" in sender:
        match = _ANGLE_ADDRESS.search(sender)
        if match and match.group(1).strip():
            return match.group(1).strip()
    match = _LOOSE_ADDRESS.search(sender)
    if match:
        return match.group(0)
    return None


def build_corpus(messages: Iterable[MessageRecord], domain_stop_list: Iterable[str] = ()) -> Dict[str, str]:
    """Concatenate message bodies per sender address, in encounter order."""

    stopped_domains = list(domain_stop_list)
    corpus: Dict[str, str] = {}
    for message in messages:
        email = extract_email(message.sender)
        if email is None:
            LOGGER.debug("Dropping message with unparseable sender %r", message.sender)
            continue
        if is_stopped_sender(email, stopped_domains):
            continue
        body = message.body or ""
        if email in corpus:
            corpus[email] = f"{corpus[email]} {body}"
        else:
            corpus[email] = body
    return corpus
