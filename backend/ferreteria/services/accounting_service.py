# Overview: Service-layer operations for accounting records.

from __future__ import annotations

from ..extensions import db
from ..models import AccountingRecord
from ferreteria.time_utils import utcnow
from .audit_service import log_action
from .reporting_service import accounting_summary
from .store_guard import store_read, store_write


def list_records() -> list[AccountingRecord]:
    with store_read("list accounting records"):
        return (
            db.session.query(AccountingRecord)
            .order_by(AccountingRecord.created_at.desc(), AccountingRecord.id.desc())
            .all()
        )


def summary() -> dict:
    return accounting_summary(list_records())


def create_record(*, patch: dict, user_id: int | None) -> AccountingRecord:
    record = AccountingRecord(
        description=patch.get("description"),
        amount_cents=patch["amount_cents"],
        record_type=patch["record_type"],
        category=patch.get("category"),
        user_id=user_id,
        created_at=utcnow(),
    )
    with store_write("create accounting record"):
        db.session.add(record)
        db.session.flush()
        log_action(
            user_id=user_id,
            action="Crear registro contable",
            entity_type="accounting_record",
            entity_id=record.id,
            details={"amount_cents": record.amount_cents, "record_type": record.record_type},
        )
        db.session.commit()
    return record
