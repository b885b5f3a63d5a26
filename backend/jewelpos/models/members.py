from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_number
from .catalog import active_unique_index
from .enums import MemberType, enum_column


class Member(db.Model):
    """
    Loyalty member.

    points / total_purchase / total_sell / transaction_count / type are
    owned by loyalty_service: incremented inside transactions, or replaced
    wholesale by the recalculation sweep. Contact fields are the only
    client-writable columns.

    CONCURRENCY: version_id is an optimistic lock; two sales for the same
    member in parallel surface as StaleDataError and are retried.
    """
    __tablename__ = "members"
    __table_args__ = (
        active_unique_index("uq_members_code_active", "member_code"),
        db.Index("ix_members_phone", "phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    member_code = db.Column(db.String(32), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(100), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    id_number = db.Column(db.String(30), nullable=True)   # KTP / national id

    type = enum_column(MemberType, nullable=False, default=MemberType.REGULAR, index=True)
    points = db.Column(db.Integer, nullable=False, default=0)
    total_purchase = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    total_sell = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    transaction_count = db.Column(db.Integer, nullable=False, default=0)

    join_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    birth_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Member id={self.id} code={self.member_code!r} type={self.type}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "member_code": self.member_code,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "id_number": self.id_number,
            "type": self.type.value if self.type else None,
            "points": self.points,
            "total_purchase": to_number(self.total_purchase),
            "total_sell": to_number(self.total_sell),
            "transaction_count": self.transaction_count,
            "join_date": to_utc_z(self.join_date),
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "notes": self.notes,
            "is_active": self.is_active,
        }
