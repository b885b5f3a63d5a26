# Overview: Member accounts: registration, contact updates, lookups and manual point awards.

from __future__ import annotations

import logging
from datetime import date

from ..extensions import db
from ..models import Member, MemberType
from ..time_utils import utcnow
from ..validation import (
    NotFoundError,
    ValidationError,
    coerce_bool,
    coerce_decimal,
    coerce_str,
    require_fields,
)
from . import document_service, loyalty_service
from .concurrency import begin_write, run_with_retry
from .ledger_service import append_ledger_event

logger = logging.getLogger(__name__)

# Client-writable fields with their max lengths. type / points / totals are
# owned by loyalty_service.
CONTACT_FIELDS = {
    "name": 100,
    "phone": 20,
    "email": 100,
    "address": 255,
    "id_number": 30,
    "notes": 500,
}


def _parse_birth_date(value) -> date | None:
    if value in (None, ""):
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("birth_date must be an ISO date (YYYY-MM-DD)")


def _apply_contact_fields(member: Member, payload: dict) -> None:
    for field, max_length in CONTACT_FIELDS.items():
        if field in payload:
            value = coerce_str(payload.get(field), field, max_length=max_length, required=(field == "name"))
            setattr(member, field, value)
    if "birth_date" in payload:
        member.birth_date = _parse_birth_date(payload.get("birth_date"))
    if "is_active" in payload:
        member.is_active = coerce_bool(payload.get("is_active"), "is_active", default=True)


def get_member(member_id: int) -> Member:
    member = db.session.query(Member).filter(
        Member.id == member_id,
        Member.deleted_at.is_(None),
    ).first()
    if not member:
        raise NotFoundError(f"Member {member_id} not found")
    return member


def get_member_by_code(member_code: str) -> Member:
    member = db.session.query(Member).filter(
        Member.member_code == member_code,
        Member.deleted_at.is_(None),
    ).first()
    if not member:
        raise NotFoundError(f"Member {member_code} not found")
    return member


def list_members(
    *,
    search: str | None = None,
    member_type: MemberType | None = None,
    is_active: bool | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[Member]:
    query = db.session.query(Member).filter(Member.deleted_at.is_(None))
    if member_type is not None:
        query = query.filter(Member.type == member_type)
    if is_active is not None:
        query = query.filter(Member.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.filter(db.or_(
            Member.name.ilike(pattern),
            Member.phone.ilike(pattern),
            Member.member_code.ilike(pattern),
        ))
    return query.order_by(Member.name.asc()).offset(offset).limit(limit).all()


def create_member(payload: dict, *, user_id: int | None = None) -> Member:
    """Register a member; the code is allocated from the MBR sequence."""
    payload = require_fields(payload, ["name"])
    member = Member(type=MemberType.REGULAR, points=0, transaction_count=0, join_date=utcnow())
    _apply_contact_fields(member, payload)

    def _op() -> Member:
        begin_write()
        member.member_code = document_service.next_document_number(document_service.MEMBER)
        db.session.add(member)
        db.session.flush()
        append_ledger_event(
            event_type="MEMBER_CREATED",
            event_category="members",
            entity_type="member",
            entity_id=member.id,
            actor_user_id=user_id,
            note=member.member_code,
        )
        db.session.commit()
        return member

    created = run_with_retry(_op)
    logger.info("Member %s registered", created.member_code)
    return created


def update_member(member_id: int, payload: dict) -> Member:
    """Contact fields only; loyalty figures are silently ignored."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    def _op() -> Member:
        member = get_member(member_id)
        _apply_contact_fields(member, payload)
        db.session.commit()
        return member

    return run_with_retry(_op)


def delete_member(member_id: int, *, user_id: int | None = None) -> None:
    def _op() -> None:
        member = get_member(member_id)
        member.deleted_at = utcnow()
        member.is_active = False
        append_ledger_event(
            event_type="MEMBER_DELETED",
            event_category="members",
            entity_type="member",
            entity_id=member.id,
            actor_user_id=user_id,
        )
        db.session.commit()

    run_with_retry(_op)


def add_member_points(member_id: int, amount, *, user_id: int | None = None) -> Member:
    """
    Manual bonus: awards floor(amount / 100,000) points. total_purchase is
    unchanged, so the tier is recomputed from the existing total.
    """
    amount = coerce_decimal(amount, "amount", minimum=0, exclusive_minimum=True)

    def _op() -> Member:
        member = get_member(member_id)
        points = loyalty_service.apply_bonus_points(member, amount)
        append_ledger_event(
            event_type="MEMBER_POINTS_ADDED",
            event_category="members",
            entity_type="member",
            entity_id=member.id,
            actor_user_id=user_id,
            payload={"amount": str(amount), "points": points},
        )
        db.session.commit()
        return member

    return run_with_retry(_op)
