"""Phone number mining from free text."""
from __future__ import annotations

import logging
import re
from typing import Iterable, List

from .stop_list import is_stopped_number

LOGGER = logging.getLogger(__name__)

TEXT_MARKER = "'"

# Optional international prefix, an optional "(0)" trunk marker and four to six
# two-digit groups, each group optionally followed by a space, dot or hyphen.
PHONE_PATTERN = re.compile(r"\+?(\d{1,2}[-\s.]?)(\s?\(0\)\s?)?(\d[-\s.]?)?(\d{2}[-\s.]?){4,6}")

_VALID_PREFIXES = ("+", "0")


def find_candidates(text: str) -> List[str]:
    """Return every raw, trimmed pattern match in ``text`` in order of appearance."""

    return [match.group(0).strip() for match in PHONE_PATTERN.finditer(text or "")]


def extract_phone_numbers(text: str, phone_stop_list: Iterable[str] = ()) -> List[str]:
    """Extract phone numbers from ``text``.

    Only matches starting with ``+`` or ``0`` are kept; the loose pattern also
    captures fragments of longer identifiers which never start that way.  The
    result is deduplicated in first-seen order, stripped of the operator's own
    numbers and every entry is prefixed with :data:`TEXT_MARKER` so spreadsheet
    storage keeps leading zeros.
    """

    stop_list = list(phone_stop_list)
    seen: List[str] = []
    for number in find_candidates(text):
        if not number.startswith(_VALID_PREFIXES):
            continue
        if number in seen:
            continue
        if is_stopped_number(number, stop_list):
            LOGGER.debug("Skipping stop-listed number %s", number)
            continue
        seen.append(number)
    return [f"{TEXT_MARKER}{number}" for number in seen]


def strip_text_marker(number: str) -> str:
    """Return ``number`` without the leading :data:`TEXT_MARKER`."""

    text = str(number).strip()
    if text.startswith(TEXT_MARKER):
        return text[len(TEXT_MARKER):].strip()
    return text
