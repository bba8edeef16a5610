"""Mine phone numbers from mail and reconcile them with Bullhorn contacts."""

from . import models  # noqa: F401
from .models import (
    ClientContactRecord,
    ContactStatus,
    CredentialChain,
    LeadRecord,
    MessageRecord,
    ReconciliationOutcome,
    ScanSummary,
    StagedContact,
    UpdateResult,
)
from .orchestrator import ReconciliationWorkflow, ScanJob, reconcile_pending  # noqa: F401

__all__ = [
    "ClientContactRecord",
    "ContactStatus",
    "CredentialChain",
    "LeadRecord",
    "MessageRecord",
    "ReconciliationOutcome",
    "ReconciliationWorkflow",
    "ScanJob",
    "ScanSummary",
    "StagedContact",
    "UpdateResult",
    "reconcile_pending",
    "crm",
    "extraction",
    "storage",
]
