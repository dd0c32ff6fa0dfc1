from __future__ import annotations

from ..extensions import db
from ferreteria.time_utils import to_utc_z


DOCUMENT_TYPES = ("boleta", "factura", "otro")


class Sale(db.Model):
    """
    Posted sale.

    Line items are stored on the row as JSON together with the unit price
    captured at posting, so the single-row insert is the whole record.
    Items and total never change after posting; only customer_name and
    document_type may be edited.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("sale_number", name="uq_sales_sale_number"),
        db.Index("ix_sales_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable document number (e.g., "V-20261019-001")
    sale_number = db.Column(db.String(64), nullable=False)

    customer_name = db.Column(db.String(255), nullable=False)
    document_type = db.Column(db.String(16), nullable=False, default="boleta")

    # [{"product_id": 1, "quantity": 2, "unit_price_cents": 1000}, ...]
    items = db.Column(db.JSON, nullable=False, default=list)
    total_cents = db.Column(db.Integer, nullable=False)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} sale_number={self.sale_number!r} total_cents={self.total_cents}>"

    def to_dict(self, include_user: bool = True) -> dict:
        data = {
            "id": self.id,
            "sale_number": self.sale_number,
            "customer_name": self.customer_name,
            "document_type": self.document_type,
            "items": list(self.items or []),
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_user:
            data["user_id"] = self.user_id
        return data


class DocumentSequence(db.Model):
    """
    Next number to hand out per document scope (e.g. "V-20261019").

    Survives deletion of sales, which is what keeps numbers from being reused.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("scope", name="uq_document_sequences_scope"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<DocumentSequence scope={self.scope!r} next_number={self.next_number}>"
