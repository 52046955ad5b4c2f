# Overview: Closed value sets that arrive as free text at the boundary.

from __future__ import annotations

from enum import Enum

from .validation import ValidationError


class _TextEnum(str, Enum):
    """
    String-valued enum with a parse-or-reject step.

    Values are stored as plain text columns; code past the boundary only ever
    sees members, never raw strings.
    """

    @classmethod
    def parse(cls, value, field: str | None = None):
        if isinstance(value, cls):
            return value
        label = field or cls.__name__
        if value is None or not str(value).strip():
            raise ValidationError(f"{label} is required")
        key = str(value).strip().upper()
        try:
            return cls(key)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValidationError(f"Invalid {label}. Allowed: {allowed}")

    def __str__(self) -> str:
        return self.value


class PaymentMode(_TextEnum):
    CASH = "CASH"
    UPI = "UPI"
    CARD = "CARD"
    BANK = "BANK"
    OTHER = "OTHER"


class StockTransactionType(_TextEnum):
    IN = "IN"
    OUT = "OUT"


class AuditAction(_TextEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EntityType(_TextEnum):
    SALE = "SALE"
    EXPENSE = "EXPENSE"
    INVENTORY_ITEM = "INVENTORY_ITEM"
    STOCK_TRANSACTION = "STOCK_TRANSACTION"
    VENDOR = "VENDOR"
    VENDOR_PAYMENT = "VENDOR_PAYMENT"


class JobStatus(_TextEnum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class VendorBillStatus(_TextEnum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
