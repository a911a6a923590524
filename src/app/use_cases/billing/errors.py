"""Error codes returned by billing and metering use cases"""

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_QUANTITY = "INVALID_QUANTITY"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    SUBSCRIPTION_INACTIVE = "SUBSCRIPTION_INACTIVE"
    SUBSCRIPTION_NOT_FOUND = "SUBSCRIPTION_NOT_FOUND"
    UNKNOWN_SERVICE = "UNKNOWN_SERVICE"
    CLIENT_NOT_FOUND = "CLIENT_NOT_FOUND"
    RESELLER_NOT_FOUND = "RESELLER_NOT_FOUND"
    INVALID_BILLING_PERIOD = "INVALID_BILLING_PERIOD"
    NO_BILLABLE_USAGE = "NO_BILLABLE_USAGE"
    DUPLICATE_INVOICE = "DUPLICATE_INVOICE"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    INVALID_INVOICE_TRANSITION = "INVALID_INVOICE_TRANSITION"
    COMMISSION_NOT_APPLICABLE = "COMMISSION_NOT_APPLICABLE"
    TRANSIENT_STORE_ERROR = "TRANSIENT_STORE_ERROR"


NOT_FOUND_CODES = frozenset({
    ErrorCode.SUBSCRIPTION_NOT_FOUND,
    ErrorCode.UNKNOWN_SERVICE,
    ErrorCode.CLIENT_NOT_FOUND,
    ErrorCode.RESELLER_NOT_FOUND,
    ErrorCode.INVOICE_NOT_FOUND,
})
