# Overview: Service-layer operations for document numbering; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import DocumentSequence, Sale
from ferreteria.time_utils import day_stamp, utcnow


SALE_PREFIX = "V"
SALE_NUMBER_PAD = 3


def format_document_number(day: str, number: int, *, prefix: str = SALE_PREFIX, pad: int = SALE_NUMBER_PAD) -> str:
    """
    V-<YYYYMMDD>-<NNN>.

    The suffix is zero-padded to `pad` digits and simply widens past that
    (V-20261019-1000); there is no overflow error.
    """
    return f"{prefix}-{day}-{number:0{pad}d}"


def parse_document_suffix(document_number: str | None, day: str, *, prefix: str = SALE_PREFIX) -> int | None:
    """Trailing number of a document issued on `day`, or None if it belongs to another day."""
    if not document_number:
        return None
    head = f"{prefix}-{day}-"
    if not document_number.startswith(head):
        return None
    tail = document_number[len(head):]
    if not tail.isdigit():
        return None
    return int(tail)


def _latest_sale_suffix(day: str) -> int:
    latest = (
        db.session.query(Sale.sale_number)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(1)
        .scalar()
    )
    return parse_document_suffix(latest, day) or 0


def next_document_number(now: datetime | None = None) -> str:
    """
    Allocate the next sale number for the calendar day of `now`.

    The most recently created sale decides where the day's sequence stands:
    if it was numbered today the next suffix follows it, otherwise the day
    starts at 1. The per-day DocumentSequence row is consulted as well so a
    number whose sale was deleted is never handed out again.

    Flushes but does not commit; the caller's transaction owns the number.
    Two concurrent callers may read the same latest sale; the unique
    constraint on Sale.sale_number rejects the loser at insert time.
    """
    now = now or utcnow()
    day = day_stamp(now)
    scope = f"{SALE_PREFIX}-{day}"

    following_latest = _latest_sale_suffix(day) + 1

    seq = (
        db.session.query(DocumentSequence)
        .filter_by(scope=scope)
        .with_for_update()
        .first()
    )
    if seq is None:
        seq = DocumentSequence(scope=scope, next_number=1)
        db.session.add(seq)

    number = max(seq.next_number, following_latest)
    seq.next_number = number + 1
    db.session.flush()

    return format_document_number(day, number)
