"""Jobs coordinating the mailbox, the staging store and the CRM."""

from .scan import ScanJob, mine_numbers
from .service import ReconciliationWorkflow, reconcile_pending

__all__ = ["ReconciliationWorkflow", "ScanJob", "mine_numbers", "reconcile_pending"]
