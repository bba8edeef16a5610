"""Helpers deciding which numbers and senders belong to the operator."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional


def normalise_number(number: str) -> str:
    """Trim whitespace and the staging text marker from a phone number."""

    return str(number).strip().lstrip("'").strip()


def normalise_domain(domain: str) -> str:
    """Return ``domain`` lowercased, without a leading ``@`` or surrounding dots."""

    return str(domain).strip().lstrip("@").strip(".").lower()


def is_stopped_number(number: str, stop_list: Iterable[str]) -> bool:
    """Return ``True`` when the trimmed ``number`` is one of the operator's numbers."""

    candidate = normalise_number(number)
    return any(candidate == normalise_number(stopped) for stopped in stop_list)


def email_domain(email: str) -> Optional[str]:
    _, at, domain = str(email).rpartition("@")
    if not at or not domain:
        return None
    return normalise_domain(domain)


def is_stopped_sender(email: str, domain_stop_list: Iterable[str]) -> bool:
    """Return ``True`` when the sender's domain (or a parent domain) is stop-listed."""

    domain = email_domain(email)
    if domain is None:
        return False
    for stopped in domain_stop_list:
        stopped_domain = normalise_domain(stopped)
        if not stopped_domain:
            continue
        if domain == stopped_domain or domain.endswith(f".{stopped_domain}"):
            return True
    return False


@dataclass(frozen=True)
class StopLists:
    """Operator-owned phone numbers and email domains excluded from mining."""

    phones: FrozenSet[str] = field(default_factory=frozenset)
    domains: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_values(cls, phones: Iterable[str] = (), domains: Iterable[str] = ()) -> "StopLists":
        return cls(
            phones=frozenset(normalise_number(phone) for phone in phones if normalise_number(phone)),
            domains=frozenset(normalise_domain(domain) for domain in domains if normalise_domain(domain)),
        )

    def merged_with(self, other: "StopLists") -> "StopLists":
        return StopLists(phones=self.phones | other.phones, domains=self.domains | other.domains)
