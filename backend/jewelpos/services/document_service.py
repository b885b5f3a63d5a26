# Overview: Human-readable code allocation (transaction codes, transfer numbers, member and raw material codes).

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence
from ..time_utils import utcnow

# document_type -> code prefix
SALE = "SL"
PURCHASE = "PR"
TRANSFER = "TRF"
RAW_MATERIAL = "RM"
MEMBER = "MBR"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _bump(document_type: str, period: str) -> int | None:
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.period == period,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type, period=period)
        .scalar()
    )
    return current - 1


def next_document_number(document_type: str, *, now: datetime | None = None, pad: int = 5) -> str:
    """
    Atomically allocate the next code for a document type within the current
    UTC day, e.g. "SL20260315" + "00042".

    Runs inside the caller's unit of work: the counter increment commits or
    rolls back together with the document that uses it.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    period = (now or utcnow()).strftime("%Y%m%d")

    next_num = _bump(document_type, period)
    if next_num is None:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(document_type=document_type, period=period, next_number=2))
            next_num = 1
        except IntegrityError:
            # Another writer created the row first
            next_num = _bump(document_type, period)
            if next_num is None:
                raise

    return f"{document_type}{period}{next_num:0{pad}d}"
