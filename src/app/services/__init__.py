from .unit_of_work import UnitOfWork
from .notification_service import UsageAlertService, UsageAlert, UsageAlertType
from .tax_policy import TaxPolicy
from .pdf_service import PdfService
from .subscription_locks import SubscriptionLocks, subscription_locks
from .store_retry import ConcurrentUpdateError, TRANSIENT_STORE_ERRORS, store_retrying

__all__ = [
    "UnitOfWork",
    "UsageAlertService",
    "UsageAlert",
    "UsageAlertType",
    "TaxPolicy",
    "PdfService",
    "SubscriptionLocks",
    "subscription_locks",
    "ConcurrentUpdateError",
    "TRANSIENT_STORE_ERRORS",
    "store_retrying",
]
