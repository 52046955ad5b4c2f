# Overview: Best-effort audit trail for mutations, plus the read side used by "recent activity".

"""
Workshop Ledger Audit Invariants (authoritative)

- Append-only: entries are never updated or deleted by the application.
- Best-effort: an entry is written AFTER the mutation it describes has
  committed, in its own transaction. If the append fails, the mutation stands,
  the failure is rolled back and logged with a traceback, and the caller
  is not told. A missed audit entry is acceptable; a missed monetary version
  is not, which is why the two are never in the same transaction.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..enums import AuditAction, EntityType
from ..models import AuditLog


def record(
    *,
    user_id: int | None,
    entity_type: EntityType | str,
    entity_id: int,
    action: AuditAction | str,
    summary: str | None = None,
) -> AuditLog | None:
    """Append one audit entry. Returns None (after logging) if the append failed."""
    try:
        entry = AuditLog(
            user_id=user_id,
            entity_type=EntityType.parse(entity_type).value,
            entity_id=entity_id,
            action=AuditAction.parse(action).value,
            summary=summary,
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception:
        db.session.rollback()
        current_app.logger.exception(
            "Audit append failed for %s %s:%s", action, entity_type, entity_id
        )
        return None


def recent(limit: int = 20) -> list[AuditLog]:
    """Most recent entries, newest first."""
    if limit <= 0:
        return []
    return (
        db.session.query(AuditLog)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
