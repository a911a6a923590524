"""Background workers for the metering and billing service"""
from .reset_sweeper import ResetSweepWorker
from .invoice_overdue import OverdueInvoiceWorker
from .usage_reconciler import UsageReconcilerWorker

__all__ = ["ResetSweepWorker", "OverdueInvoiceWorker", "UsageReconcilerWorker"]
