from __future__ import annotations

from ..extensions import db
from ferreteria.time_utils import to_utc_z


RECORD_TYPES = ("ingreso", "egreso")


class AccountingRecord(db.Model):
    __tablename__ = "accounting_records"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_accounting_records_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    record_type = db.Column(db.String(16), nullable=False, index=True)
    category = db.Column(db.String(128), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount_cents": self.amount_cents,
            "record_type": self.record_type,
            "category": self.category,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }


class Alert(db.Model):
    __tablename__ = "alerts"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    alert_type = db.Column(db.String(32), nullable=False, index=True)  # e.g. stock_bajo
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    product_id = db.Column(db.Integer, nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "alert_type": self.alert_type,
            "title": self.title,
            "message": self.message,
            "is_read": self.is_read,
            "product_id": self.product_id,
            "created_at": to_utc_z(self.created_at),
        }


class ActionLog(db.Model):
    """
    Append-only audit trail of user actions.

    Rows are written inside the same transaction as the change they describe
    and are never updated or deleted through the API.
    """
    __tablename__ = "action_logs"
    __table_args__ = (
        db.Index("ix_action_logs_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    action = db.Column(db.String(128), nullable=False)
    entity_type = db.Column(db.String(64), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=True)
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "details": self.details,
            "created_at": to_utc_z(self.created_at),
        }
