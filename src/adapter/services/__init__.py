from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    LoggingUsageAlertService,
    WebhookUsageAlertService,
    CompositeUsageAlertService,
    create_usage_alert_service,
)
from .tax_policy import FlatRateTaxPolicy, ZeroTaxPolicy, create_tax_policy
from .pdf_service import ReportLabPdfService

__all__ = [
    "SqlAlchemyUnitOfWork",
    "LoggingUsageAlertService",
    "WebhookUsageAlertService",
    "CompositeUsageAlertService",
    "create_usage_alert_service",
    "FlatRateTaxPolicy",
    "ZeroTaxPolicy",
    "create_tax_policy",
    "ReportLabPdfService",
]
