"""
Sales Service - versioned sale records

WHY: A sale can be corrected after the fact (wrong amount, wrong category)
without losing what was originally recorded. Every edit is a new version;
month-end reports run later still see a stable history.

Amounts enter and leave this module in rupees; everything stored is paise.
"""

from __future__ import annotations

from ..extensions import db
from ..enums import AuditAction, EntityType
from ..models import Sale, SaleVersion
from ..money import to_major
from ..time_utils import to_utc_z
from ..validation import string_lengths
from . import audit_service
from .concurrency import run_with_retry
from .payloads import parse_version_payload
from .versioning import VersionedLedger


SALE_FIELDS = ("date", "amount_cents", "category", "payment_mode", "reference", "note", "received_by")
SALE_TEXT_FIELDS = ("category", "reference", "note", "received_by")


def sale_ledger(session=None) -> VersionedLedger:
    return VersionedLedger(
        session or db.session,
        Sale,
        SaleVersion,
        parent_key="sale_id",
        fields=SALE_FIELDS,
        required_fields=("date", "amount_cents", "payment_mode"),
        label="Sale",
    )


def _describe(version: SaleVersion) -> str:
    text = f"₹{to_major(version.amount_cents):.2f} ({version.payment_mode})"
    if version.received_by:
        text += f" - received by {version.received_by}"
    return text


def create_sale(payload: dict, *, actor_id: int | None = None) -> Sale:
    """Create a sale with version 1."""
    fields = parse_version_payload(
        payload, partial=False, text_fields=SALE_TEXT_FIELDS, max_lengths=string_lengths(SaleVersion)
    )
    sale = sale_ledger().create(fields, actor_id=actor_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.SALE,
        entity_id=sale.id,
        action=AuditAction.CREATE,
        summary=f"Created sale of {_describe(sale.current_version)}",
    )
    return sale


def amend_sale(sale_id: int, payload: dict, *, actor_id: int | None = None) -> SaleVersion:
    """Append a new version; omitted fields keep their current values."""
    changes = parse_version_payload(
        payload, partial=True, text_fields=SALE_TEXT_FIELDS, max_lengths=string_lengths(SaleVersion)
    )
    ledger = sale_ledger()
    version = run_with_retry(lambda: ledger.amend(sale_id, changes, actor_id=actor_id), session=ledger.session)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.SALE,
        entity_id=sale_id,
        action=AuditAction.UPDATE,
        summary=f"Updated sale to version {version.version_number}: {_describe(version)}",
    )
    return version


def delete_sale(sale_id: int, *, actor_id: int | None = None) -> None:
    removed = sale_ledger().remove(sale_id)

    audit_service.record(
        user_id=actor_id,
        entity_type=EntityType.SALE,
        entity_id=sale_id,
        action=AuditAction.DELETE,
        summary=f"Deleted sale: {removed.get('category') or 'Uncategorized'}",
    )


def get_sale(sale_id: int) -> Sale:
    return sale_ledger().get(sale_id)


def sale_history(sale_id: int) -> list[SaleVersion]:
    return sale_ledger().read_history(sale_id)


def list_sales(start=None, end=None) -> list[tuple[Sale, SaleVersion]]:
    """Sales whose current version falls in [start, end], newest first."""
    return sale_ledger().list_current(start, end)


def serialize_version(version: SaleVersion) -> dict:
    return {
        "id": version.id,
        "version_number": version.version_number,
        "date": to_utc_z(version.date),
        "amount": to_major(version.amount_cents),
        "category": version.category,
        "payment_mode": version.payment_mode,
        "reference": version.reference,
        "note": version.note,
        "received_by": version.received_by,
        "created_at": to_utc_z(version.created_at),
        "created_by_id": version.created_by_id,
    }


def serialize_sale(sale: Sale, version: SaleVersion | None = None) -> dict:
    """API shape: flat current fields plus the nested current version."""
    version = version or sale.current_version
    current = serialize_version(version)
    return {
        "id": sale.id,
        "created_at": to_utc_z(sale.created_at),
        "date": current["date"],
        "amount": current["amount"],
        "category": current["category"],
        "payment_mode": current["payment_mode"],
        "reference": current["reference"],
        "note": current["note"],
        "received_by": current["received_by"],
        "current_version": current,
    }
