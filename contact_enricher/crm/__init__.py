"""Clients for the Bullhorn REST API."""

from .auth import CRMAuthSession
from .base import AuthError, SearchFailure
from .directory import CRMDirectory, select_perfect_match
from .updater import CRMUpdater

__all__ = [
    "AuthError",
    "CRMAuthSession",
    "CRMDirectory",
    "CRMUpdater",
    "SearchFailure",
    "select_perfect_match",
]
