"""Core domain models."""

from core.models.payment import Payment, PaymentCreate, PaymentMethod, PaymentStatus
from core.models.booking import (
    Booking, BookingCreate, BookingStatus, StatusDisplay, STATUS_DISPLAY,
)
from core.models.quotation import (
    Quotation, QuotationCreate, QuotationDecision, QuotationLineItem,
    QuotationStatus, QuotationTotals, SparePartLine,
)
from core.models.wallet import (
    WalletAccount, WalletTransaction, WalletSummary, TransactionType, ReferenceType,
)
from core.models.audit_entry import AuditAction, AuditEntry
from core.models.user import UserRef, UserRole, UserStatus
from core.models.settlement import (
    BookingDetail, QuotationDecisionResult, RefundResult, TopUpResult, WalletReconciliation,
)

__all__ = [
    # Payment
    "Payment", "PaymentCreate", "PaymentMethod", "PaymentStatus",
    # Booking
    "Booking", "BookingCreate", "BookingStatus", "StatusDisplay", "STATUS_DISPLAY",
    # Quotation
    "Quotation", "QuotationCreate", "QuotationDecision", "QuotationLineItem",
    "QuotationStatus", "QuotationTotals", "SparePartLine",
    # Wallet
    "WalletAccount", "WalletTransaction", "WalletSummary", "TransactionType", "ReferenceType",
    # Audit
    "AuditAction", "AuditEntry",
    # User
    "UserRef", "UserRole", "UserStatus",
    # Settlement results
    "BookingDetail", "QuotationDecisionResult", "RefundResult", "TopUpResult",
    "WalletReconciliation",
]
