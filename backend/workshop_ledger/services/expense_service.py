"""
Expense Service - versioned expense records

Same version-chain behavior as sales. The one difference is the payer: it is
not a column, it rides in the note as a [PAID_BY:<name>] prefix (see
attribution.py). Callers pass `paid_by` and a plain `note`; this module is the
only writer of the tagged form.

Amend rules for the payer:
- paid_by present: replaces the tag (null or "" removes it)
- paid_by absent: the existing tag is kept, even when the note text changes
- note absent: the existing note text is kept, even when paid_by changes
"""

from __future__ import annotations

from ..extensions import db
from ..enums import AuditAction, EntityType
from ..models import Expense, ExpenseVersion
from ..money import to_major
from ..time_utils import to_utc_z
from ..validation import ValidationError, optional_text, string_lengths
from . import audit_service
from .concurrency import run_with_retry
from .attribution import add_paid_by, extract_paid_by, strip_paid_by
from .payloads import parse_version_payload
from .versioning import VersionedLedger


EXPENSE_FIELDS = ("date", "amount_cents", "category", "vendor", "payment_mode", "reference", "note")
EXPENSE_TEXT_FIELDS = ("category", "vendor", "reference", "note")


def expense_ledger(session=None) -> VersionedLedger:
    return VersionedLedger(
        session or db.session,
        Expense,
        ExpenseVersion,
        parent_key="expense_id",
        fields=EXPENSE_FIELDS,
        required_fields=("date", "amount_cents", "payment_mode"),
        label="Expense",
    )


def parse_paid_by(value) -> str | None:
    name = optional_text(value)
    if name is not None and ("[" in name or "]" in name):
        raise ValidationError("paid_by cannot contain '[' or ']'")
    return name


def _describe(version: ExpenseVersion) -> str:
    text = f"₹{to_major(version.amount_cents):.2f} ({version.payment_mode})"
    target = version.vendor or version.category
    if target:
        text += f" - {target}"
    paid_by = extract_paid_by(version.note)
    if paid_by:
        text += f", paid by {paid_by}"
    return text


def create_expense(payload: dict, *, actor_id: int | None = None) -> Expense:
    """Create an expense with version 1; `paid_by` becomes the note tag."""
    payload = payload or {}
    fields = parse_version_payload(
        payload, partial=False, text_fields=EXPENSE_TEXT_FIELDS,
        extra_allowed=("paid_by",), max_lengths=string_lengths(ExpenseVersion),
    )
    paid_by = parse_paid_by(payload.get("paid_by"))
    if paid_by:
        fields["note"] = add_paid_by(paid_by, strip_paid_by(fields.get("note")))

    expense = expense_ledger().create(fields, actor_id=actor_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.EXPENSE,
        entity_id=expense.id,
        action=AuditAction.CREATE,
        summary=f"Created expense of {_describe(expense.current_version)}",
    )
    return expense


def amend_expense(expense_id: int, payload: dict, *, actor_id: int | None = None) -> ExpenseVersion:
    """Append a new version; omitted fields (payer included) keep their current values."""
    payload = payload or {}
    ledger = expense_ledger()
    changes = parse_version_payload(
        payload, partial=True, text_fields=EXPENSE_TEXT_FIELDS,
        extra_allowed=("paid_by",), max_lengths=string_lengths(ExpenseVersion),
    )

    if "paid_by" in payload or "note" in payload:
        current = ledger.read_current(expense_id)
        if "paid_by" in payload:
            paid_by = parse_paid_by(payload["paid_by"])
        else:
            paid_by = extract_paid_by(current.note)
        if "note" in payload:
            note = strip_paid_by(changes.get("note"))
        else:
            note = strip_paid_by(current.note)
        changes["note"] = add_paid_by(paid_by, note)

    version = run_with_retry(lambda: ledger.amend(expense_id, changes, actor_id=actor_id), session=ledger.session)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.EXPENSE,
        entity_id=expense_id,
        action=AuditAction.UPDATE,
        summary=f"Updated expense to version {version.version_number}: {_describe(version)}",
    )
    return version


def delete_expense(expense_id: int, *, actor_id: int | None = None) -> None:
    removed = expense_ledger().remove(expense_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.EXPENSE,
        entity_id=expense_id,
        action=AuditAction.DELETE,
        summary=f"Deleted expense: {removed.get('vendor') or removed.get('category') or 'Uncategorized'}",
    )


def get_expense(expense_id: int) -> Expense:
    return expense_ledger().get(expense_id)


def expense_history(expense_id: int) -> list[ExpenseVersion]:
    return expense_ledger().read_history(expense_id)


def list_expenses(start=None, end=None) -> list[tuple[Expense, ExpenseVersion]]:
    return expense_ledger().list_current(start, end)


def serialize_version(version: ExpenseVersion) -> dict:
    """Display form: rupees, note without the tag, payer split out."""
    return {
        "id": version.id,
        "version_number": version.version_number,
        "date": to_utc_z(version.date),
        "amount": to_major(version.amount_cents),
        "category": version.category,
        "vendor": version.vendor,
        "payment_mode": version.payment_mode,
        "reference": version.reference,
        "note": strip_paid_by(version.note),
        "paid_by": extract_paid_by(version.note),
        "created_at": to_utc_z(version.created_at),
        "created_by_id": version.created_by_id,
    }


def serialize_expense(expense: Expense, version: ExpenseVersion | None = None) -> dict:
    version = version or expense.current_version
    current = serialize_version(version)
    payload = {"id": expense.id, "created_at": to_utc_z(expense.created_at)}
    for key in ("date", "amount", "category", "vendor", "payment_mode", "reference", "note", "paid_by"):
        payload[key] = current[key]
    payload["current_version"] = current
    return payload
