# Overview: Vendor bills and dues; what is owed is derived from bills, never stored.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..enums import AuditAction, EntityType, PaymentMode, VendorBillStatus
from ..models import Expense, Vendor, VendorBill
from ..money import to_major, to_minor
from ..time_utils import to_utc_z, utcnow
from ..validation import NotFoundError, ValidationError, coerce_datetime, optional_text
from . import audit_service, expense_service


VENDOR_PAYMENT_CATEGORY = "Vendor Payment"

BILL_FIELDS = (
    "date", "amount", "amount_paid", "payment_mode", "invoice_number",
    "description", "due_date", "create_expense", "paid_by",
)


def get_vendor(vendor_id: int) -> Vendor:
    vendor = db.session.get(Vendor, vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor not found")
    return vendor


def create_vendor(name, *, actor_id: int | None = None) -> Vendor:
    clean = optional_text(name)
    if not clean:
        raise ValidationError("name is required")
    if len(clean) > 255:
        raise ValidationError("name exceeds max length 255")

    vendor = Vendor(name=clean, is_active=True)
    db.session.add(vendor)
    db.session.commit()

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.VENDOR,
        entity_id=vendor.id,
        action=AuditAction.CREATE,
        summary=f"Created vendor {vendor.name}",
    )
    return vendor


def bill_status(bill: VendorBill) -> VendorBillStatus:
    paid = bill.amount_paid_cents or 0
    if paid <= 0:
        return VendorBillStatus.PENDING
    if paid < bill.amount_cents:
        return VendorBillStatus.PARTIAL
    return VendorBillStatus.PAID


def vendor_due(vendor_id: int) -> int:
    """Outstanding paise across all of the vendor's bills."""
    get_vendor(vendor_id)
    due = (
        db.session.query(
            func.coalesce(func.sum(VendorBill.amount_cents - VendorBill.amount_paid_cents), 0)
        )
        .filter(VendorBill.vendor_id == vendor_id)
        .scalar()
    )
    return int(due or 0)


def get_bill(vendor_id: int, bill_id: int) -> VendorBill:
    """A bill of this vendor; a bill of another vendor is not found."""
    bill = db.session.get(VendorBill, bill_id)
    if bill is None or bill.vendor_id != vendor_id:
        raise NotFoundError("Bill not found for this vendor")
    return bill


def _check_amounts(amount_cents: int, paid_cents: int, mode: str | None) -> None:
    if amount_cents <= 0:
        raise ValidationError("amount must be > 0")
    if paid_cents < 0:
        raise ValidationError("amount_paid must be >= 0")
    if paid_cents > amount_cents:
        raise ValidationError("amount_paid cannot exceed amount")
    if paid_cents > 0 and mode is None:
        raise ValidationError("payment_mode is required when amount_paid > 0")


def _parse_mode(value) -> str | None:
    return PaymentMode.parse(value, "payment_mode").value if value else None


def _payment_note(vendor: Vendor, bill: VendorBill) -> str:
    note = f"Payment to {vendor.name}"
    if bill.invoice_number:
        note += f" - Invoice {bill.invoice_number}"
    return note


def _book_payment(vendor: Vendor, bill: VendorBill, paid_by, actor_id: int | None) -> None:
    """Create the "Vendor Payment" expense for the paid part and link it."""
    expense = expense_service.create_expense(
        {
            "date": bill.date,
            "amount": to_major(bill.amount_paid_cents),
            "category": VENDOR_PAYMENT_CATEGORY,
            "vendor": vendor.name,
            "payment_mode": bill.payment_mode,
            "reference": bill.invoice_number,
            "note": _payment_note(vendor, bill),
            "paid_by": paid_by,
        },
        actor_id=actor_id,
    )
    bill.related_expense_id = expense.id
    db.session.commit()


def _linked_expense_id(bill: VendorBill) -> int | None:
    """The linked expense id, if that expense still exists."""
    if bill.related_expense_id is None:
        return None
    if db.session.get(Expense, bill.related_expense_id) is None:
        return None
    return bill.related_expense_id


def record_bill(
    vendor_id: int,
    amount,
    amount_paid=0,
    payment_mode=None,
    *,
    date=None,
    invoice_number=None,
    description=None,
    due_date=None,
    create_expense: bool = False,
    paid_by=None,
    actor_id: int | None = None,
) -> VendorBill:
    """
    Record a vendor invoice (rupees in) and what was paid against it.

    With create_expense=True and a paid part, the payment is also booked as an
    expense (category "Vendor Payment") through the expense ledger, tagged
    with paid_by, and linked from the bill.
    """
    vendor = get_vendor(vendor_id)

    amount_cents = to_minor(amount)
    paid_cents = to_minor(amount_paid or 0, field="amount_paid")
    mode = _parse_mode(payment_mode)
    _check_amounts(amount_cents, paid_cents, mode)

    if create_expense:
        expense_service.parse_paid_by(paid_by)

    bill = VendorBill(
        vendor_id=vendor.id,
        date=coerce_datetime(date or None, "date") or utcnow(),
        amount_cents=amount_cents,
        amount_paid_cents=paid_cents,
        payment_mode=mode,
        invoice_number=optional_text(invoice_number),
        description=optional_text(description),
        due_date=coerce_datetime(due_date or None, "due_date"),
    )
    db.session.add(bill)
    db.session.commit()

    if create_expense and paid_cents > 0:
        _book_payment(vendor, bill, paid_by, actor_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.VENDOR_PAYMENT,
        entity_id=bill.id,
        action=AuditAction.CREATE,
        summary=f"Recorded bill of ₹{to_major(amount_cents):.2f} for {vendor.name} (paid ₹{to_major(paid_cents):.2f})",
    )
    return bill


def update_bill(vendor_id: int, bill_id: int, patch: dict, *, actor_id: int | None = None) -> VendorBill:
    """
    Correct a bill or record a pay-down. Keys absent from `patch` keep their
    current values.

    A linked "Vendor Payment" expense follows the paid amount: it is amended
    to a new version when the payment changes (its PAID_BY tag is kept
    unless paid_by is given), and removed when nothing is paid any more.
    Without a linked expense, create_expense=True books one for the paid part.
    """
    patch = patch or {}
    if not isinstance(patch, dict):
        raise ValidationError("Invalid JSON payload")
    for key in patch:
        if key not in BILL_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")

    bill = get_bill(vendor_id, bill_id)
    vendor = bill.vendor
    old_paid = bill.amount_paid_cents
    old_mode = bill.payment_mode

    amount_cents = bill.amount_cents
    if patch.get("amount") is not None:
        amount_cents = to_minor(patch["amount"])
    paid_cents = old_paid
    if patch.get("amount_paid") is not None:
        paid_cents = to_minor(patch["amount_paid"], field="amount_paid")
    mode = _parse_mode(patch["payment_mode"]) if "payment_mode" in patch else old_mode
    _check_amounts(amount_cents, paid_cents, mode)

    if "paid_by" in patch:
        expense_service.parse_paid_by(patch["paid_by"])

    if patch.get("date"):
        bill.date = coerce_datetime(patch["date"], "date")
    if "due_date" in patch:
        bill.due_date = coerce_datetime(patch["due_date"] or None, "due_date")
    if "invoice_number" in patch:
        bill.invoice_number = optional_text(patch["invoice_number"])
    if "description" in patch:
        bill.description = optional_text(patch["description"])
    bill.amount_cents = amount_cents
    bill.amount_paid_cents = paid_cents
    bill.payment_mode = mode
    db.session.commit()

    expense_id = _linked_expense_id(bill)
    if expense_id is not None and paid_cents == 0:
        bill.related_expense_id = None
        db.session.commit()
        expense_service.delete_expense(expense_id, actor_id=actor_id)
    elif expense_id is not None and (paid_cents != old_paid or mode != old_mode or "paid_by" in patch):
        changes = {"amount": to_major(paid_cents), "payment_mode": mode}
        if "paid_by" in patch:
            changes["paid_by"] = patch["paid_by"]
        expense_service.amend_expense(expense_id, changes, actor_id=actor_id)
    elif expense_id is None and patch.get("create_expense") and paid_cents > 0:
        _book_payment(vendor, bill, patch.get("paid_by"), actor_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.VENDOR_PAYMENT,
        entity_id=bill.id,
        action=AuditAction.UPDATE,
        summary=(
            f"Updated bill for {vendor.name}: ₹{to_major(amount_cents):.2f}, "
            f"paid ₹{to_major(old_paid):.2f} -> ₹{to_major(paid_cents):.2f}"
        ),
    )
    return bill


def delete_bill(vendor_id: int, bill_id: int, *, actor_id: int | None = None) -> None:
    """Delete a bill together with its linked expense, if any."""
    bill = get_bill(vendor_id, bill_id)
    vendor_name = bill.vendor.name
    expense_id = _linked_expense_id(bill)

    db.session.delete(bill)
    db.session.commit()

    if expense_id is not None:
        expense_service.delete_expense(expense_id, actor_id=actor_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.VENDOR_PAYMENT,
        entity_id=bill_id,
        action=AuditAction.DELETE,
        summary=f"Deleted bill for vendor {vendor_name}",
    )


def serialize_bill(bill: VendorBill) -> dict:
    return {
        "id": bill.id,
        "vendor_id": bill.vendor_id,
        "date": to_utc_z(bill.date),
        "amount": to_major(bill.amount_cents),
        "amount_paid": to_major(bill.amount_paid_cents),
        "due": to_major(bill.amount_cents - bill.amount_paid_cents),
        "status": bill_status(bill).value,
        "payment_mode": bill.payment_mode,
        "invoice_number": bill.invoice_number,
        "description": bill.description,
        "due_date": to_utc_z(bill.due_date),
        "related_expense_id": bill.related_expense_id,
    }


def serialize_vendor(vendor: Vendor) -> dict:
    payload = vendor.to_dict()
    payload["total_due"] = to_major(vendor_due(vendor.id))
    return payload
