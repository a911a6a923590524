from .subscription_repository import SubscriptionRepository
from .usage_event_repository import UsageEventRepository
from .catalog_repository import CatalogRepository
from .directory_repository import DirectoryRepository
from .invoice_repository import InvoiceRepository
from .invoice_line_repository import InvoiceLineRepository

__all__ = [
    "SubscriptionRepository",
    "UsageEventRepository",
    "CatalogRepository",
    "DirectoryRepository",
    "InvoiceRepository",
    "InvoiceLineRepository",
]
