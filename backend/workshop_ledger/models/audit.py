from __future__ import annotations

from ..extensions import db
from workshop_ledger.time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Append-only record of mutating actions.

    entity_id is a weak reference (lookup only): the entity may since have been
    deleted, the entry stays. Rows are never updated or deleted by the app.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(16), nullable=False)
    summary = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def __repr__(self) -> str:
        return f"<AuditLog id={self.id} {self.action} {self.entity_type}:{self.entity_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "summary": self.summary,
            "timestamp": to_utc_z(self.timestamp),
        }
