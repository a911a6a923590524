from .subscription_repository import SqlAlchemySubscriptionRepository
from .usage_event_repository import SqlAlchemyUsageEventRepository
from .catalog_repository import SqlAlchemyCatalogRepository
from .directory_repository import SqlAlchemyDirectoryRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_repository import SqlAlchemyInvoiceLineRepository

__all__ = [
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyUsageEventRepository",
    "SqlAlchemyCatalogRepository",
    "SqlAlchemyDirectoryRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineRepository",
]
