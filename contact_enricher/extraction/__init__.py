"""Phone number mining from mailbox correspondence."""

from .corpus import build_corpus, extract_email
from .phones import TEXT_MARKER, extract_phone_numbers, strip_text_marker
from .stop_list import StopLists, is_stopped_number, is_stopped_sender

__all__ = [
    "StopLists",
    "TEXT_MARKER",
    "build_corpus",
    "extract_email",
    "extract_phone_numbers",
    "is_stopped_number",
    "is_stopped_sender",
    "strip_text_marker",
]
