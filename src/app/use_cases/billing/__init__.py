"""Billing and metering use cases"""
from .resolve_price import ResolvePrice
from .record_usage import RecordUsage
from .ensure_current_period import EnsureCurrentPeriod
from .consume_usage import ConsumeUsage
from .sweep_resets import SweepResets
from .generate_invoice import GenerateInvoice
from .invoice_transitions import (
    SendInvoice,
    MarkInvoicePaid,
    CancelInvoice,
    MarkInvoiceOverdue,
    GetInvoice,
)
from .mark_overdue_invoices import MarkOverdueInvoices
from .render_invoice_pdf import RenderInvoicePdf
from .calculate_commission import CalculateCommission, SummarizeCommission
from .reconcile_usage import ReconcileUsage
from .errors import ErrorCode
from .dtos import (
    ConsumeUsageCommandDTO,
    RecordUsageCommandDTO,
    UsageEventResponseDTO,
    ResetResultDTO,
    ResetSweepResultDTO,
    ResolvedPriceDTO,
    GenerateInvoiceCommandDTO,
    InvoiceLineDTO,
    InvoiceResponseDTO,
    MarkInvoicePaidCommandDTO,
    InvoicePdfResponseDTO,
    OverdueSweepResultDTO,
    CommissionDTO,
    CommissionSummaryDTO,
    UsageDiscrepancyDTO,
    UsageReconciliationResultDTO,
)

__all__ = [
    "ResolvePrice",
    "RecordUsage",
    "EnsureCurrentPeriod",
    "ConsumeUsage",
    "SweepResets",
    "GenerateInvoice",
    "SendInvoice",
    "MarkInvoicePaid",
    "CancelInvoice",
    "MarkInvoiceOverdue",
    "GetInvoice",
    "MarkOverdueInvoices",
    "RenderInvoicePdf",
    "CalculateCommission",
    "SummarizeCommission",
    "ReconcileUsage",
    "ErrorCode",
    "ConsumeUsageCommandDTO",
    "RecordUsageCommandDTO",
    "UsageEventResponseDTO",
    "ResetResultDTO",
    "ResetSweepResultDTO",
    "ResolvedPriceDTO",
    "GenerateInvoiceCommandDTO",
    "InvoiceLineDTO",
    "InvoiceResponseDTO",
    "MarkInvoicePaidCommandDTO",
    "InvoicePdfResponseDTO",
    "OverdueSweepResultDTO",
    "CommissionDTO",
    "CommissionSummaryDTO",
    "UsageDiscrepancyDTO",
    "UsageReconciliationResultDTO",
]
