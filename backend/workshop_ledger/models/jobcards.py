from __future__ import annotations

from ..extensions import db
from workshop_ledger.time_utils import to_utc_z


class JobCard(db.Model):
    """
    Workshop job card, as far as reporting needs it.

    Job card editing (line items, inspections, payments) happens elsewhere;
    the reporting service only reads status and the money totals (paise).
    """
    __tablename__ = "job_cards"
    __table_args__ = (
        db.UniqueConstraint("job_number", name="uq_job_cards_job_number"),
        db.Index("ix_job_cards_status", "status"),
        db.Index("ix_job_cards_in_date", "in_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    job_number = db.Column(db.String(64), nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)
    in_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # OPEN, IN_PROGRESS, READY, DELIVERED, CANCELLED
    status = db.Column(db.String(16), nullable=False, default="OPEN")

    labour_total_cents = db.Column(db.Integer, nullable=False, default=0)
    parts_total_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False, default=0)
    advance_paid_cents = db.Column(db.Integer, nullable=False, default=0)
    pending_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # WASHING, DECOR, MECHANICAL, DENTING_PAINTING, GENERAL, CUSTOM
    template_used = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job_number": self.job_number,
            "customer_name": self.customer_name,
            "in_date": to_utc_z(self.in_date),
            "status": self.status,
            "labour_total_cents": self.labour_total_cents,
            "parts_total_cents": self.parts_total_cents,
            "grand_total_cents": self.grand_total_cents,
            "advance_paid_cents": self.advance_paid_cents,
            "pending_amount_cents": self.pending_amount_cents,
            "template_used": self.template_used,
            "created_at": to_utc_z(self.created_at),
        }
