from __future__ import annotations

from ..extensions import db
from workshop_ledger.time_utils import to_utc_z


class Sale(db.Model):
    """
    Sale record: a stable identity plus a pointer to its authoritative version.

    VERSIONING:
    - Money-bearing fields live on SaleVersion, never on the record itself.
    - Versions are append-only and numbered 1..N without gaps.
    - current_version_id always addresses the highest version_number.
    - Deleting a sale removes every version first, then the record (hard delete).

    row_version is an optimistic lock: two requests repointing the same sale
    cannot both commit.
    """
    __tablename__ = "sales"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Nullable only between the version insert and the repoint (same transaction)
    current_version_id = db.Column(
        db.Integer,
        db.ForeignKey("sale_versions.id", use_alter=True, name="fk_sales_current_version"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    row_version = db.Column(db.Integer, nullable=False, default=1)

    versions = db.relationship(
        "SaleVersion",
        foreign_keys="SaleVersion.sale_id",
        back_populates="sale",
        order_by="SaleVersion.version_number.desc()",
        cascade="all, delete-orphan",
    )
    current_version = db.relationship("SaleVersion", foreign_keys=[current_version_id], viewonly=True)

    __mapper_args__ = {"version_id_col": row_version}

    def __repr__(self) -> str:
        return f"<Sale id={self.id} current_version_id={self.current_version_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "current_version_id": self.current_version_id,
            "created_at": to_utc_z(self.created_at),
        }


class SaleVersion(db.Model):
    """
    Immutable snapshot of a sale.

    Amounts are integer paise. received_by is the counterparty who took the
    money; absence is reported as "Unknown" by reports, never defaulted here.
    """
    __tablename__ = "sale_versions"
    __table_args__ = (
        # Serializes version number allocation between concurrent amends
        db.UniqueConstraint("sale_id", "version_number", name="uq_sale_versions_sale_number"),
        db.Index("ix_sale_versions_date", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = db.Column(db.Integer, nullable=False)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(120), nullable=True)
    payment_mode = db.Column(db.String(16), nullable=False)
    reference = db.Column(db.String(255), nullable=True)
    note = db.Column(db.Text, nullable=True)
    received_by = db.Column(db.String(120), nullable=True)

    created_by_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", foreign_keys=[sale_id], back_populates="versions")

    def __repr__(self) -> str:
        return f"<SaleVersion sale_id={self.sale_id} v{self.version_number} amount_cents={self.amount_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "version_number": self.version_number,
            "date": to_utc_z(self.date),
            "amount_cents": self.amount_cents,
            "category": self.category,
            "payment_mode": self.payment_mode,
            "reference": self.reference,
            "note": self.note,
            "received_by": self.received_by,
            "created_by_id": self.created_by_id,
            "created_at": to_utc_z(self.created_at),
        }
