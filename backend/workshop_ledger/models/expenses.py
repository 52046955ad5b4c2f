from __future__ import annotations

from ..extensions import db
from workshop_ledger.time_utils import to_utc_z


class Expense(db.Model):
    """
    Expense record. Same version-chain shape as Sale.

    The payer ("paid by") is carried inside the version note as a
    [PAID_BY:<name>] prefix; see services/attribution.py.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    current_version_id = db.Column(
        db.Integer,
        db.ForeignKey("expense_versions.id", use_alter=True, name="fk_expenses_current_version"),
        nullable=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    row_version = db.Column(db.Integer, nullable=False, default=1)

    versions = db.relationship(
        "ExpenseVersion",
        foreign_keys="ExpenseVersion.expense_id",
        back_populates="expense",
        order_by="ExpenseVersion.version_number.desc()",
        cascade="all, delete-orphan",
    )
    current_version = db.relationship("ExpenseVersion", foreign_keys=[current_version_id], viewonly=True)

    __mapper_args__ = {"version_id_col": row_version}

    def __repr__(self) -> str:
        return f"<Expense id={self.id} current_version_id={self.current_version_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "current_version_id": self.current_version_id,
            "created_at": to_utc_z(self.created_at),
        }


class ExpenseVersion(db.Model):
    __tablename__ = "expense_versions"
    __table_args__ = (
        db.UniqueConstraint("expense_id", "version_number", name="uq_expense_versions_expense_number"),
        db.Index("ix_expense_versions_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = db.Column(db.Integer, nullable=False)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(120), nullable=True)
    vendor = db.Column(db.String(255), nullable=True)
    payment_mode = db.Column(db.String(16), nullable=False)
    reference = db.Column(db.String(255), nullable=True)
    # May start with a [PAID_BY:<name>] tag
    note = db.Column(db.Text, nullable=True)

    created_by_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    expense = db.relationship("Expense", foreign_keys=[expense_id], back_populates="versions")

    def __repr__(self) -> str:
        return f"<ExpenseVersion expense_id={self.expense_id} v{self.version_number} amount_cents={self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "expense_id": self.expense_id,
            "version_number": self.version_number,
            "date": to_utc_z(self.date),
            "amount_cents": self.amount_cents,
            "category": self.category,
            "vendor": self.vendor,
            "payment_mode": self.payment_mode,
            "reference": self.reference,
            "note": self.note,
            "created_by_id": self.created_by_id,
            "created_at": to_utc_z(self.created_at),
        }
