from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_number
from .catalog import active_unique_index
from .enums import RawMaterialCondition, RawMaterialStatus, enum_column


class RawMaterial(db.Model):
    """
    Scrap/used gold bought from customers, kept by weight until it is
    processed (melted/reworked) or sold on.

    total_buy_price is always weight_grams x buy_price_per_gram.
    """
    __tablename__ = "raw_materials"
    __table_args__ = (
        active_unique_index("uq_raw_materials_code_active", "code"),
        db.Index("ix_raw_materials_location_status", "location_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=False)
    gold_category_id = db.Column(db.Integer, db.ForeignKey("gold_categories.id"), nullable=True, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)

    weight_gross = db.Column(db.Numeric(12, 3), nullable=False, default=Decimal("0"))
    shrinkage_percent = db.Column(db.Numeric(5, 2), nullable=False, default=Decimal("0"))
    weight_grams = db.Column(db.Numeric(12, 3), nullable=False)   # net
    purity = db.Column(db.Numeric(6, 2), nullable=True)             # e.g. 75.00 (%)
    buy_price_per_gram = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    total_buy_price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))

    condition = enum_column(RawMaterialCondition, nullable=False, default=RawMaterialCondition.LIKE_NEW)
    status = enum_column(RawMaterialStatus, nullable=False, default=RawMaterialStatus.AVAILABLE, index=True)

    supplier_name = db.Column(db.String(100), nullable=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True, index=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=True, index=True)

    received_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    received_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    processed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    gold_category = db.relationship("GoldCategory")
    location = db.relationship("Location")
    member = db.relationship("Member")
    transaction = db.relationship("Transaction", backref=db.backref("raw_materials", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "gold_category_id": self.gold_category_id,
            "location_id": self.location_id,
            "weight_gross": to_number(self.weight_gross),
            "shrinkage_percent": to_number(self.shrinkage_percent),
            "weight_grams": to_number(self.weight_grams),
            "purity": to_number(self.purity),
            "buy_price_per_gram": to_number(self.buy_price_per_gram),
            "total_buy_price": to_number(self.total_buy_price),
            "condition": self.condition.value if self.condition else None,
            "status": self.status.value if self.status else None,
            "supplier_name": self.supplier_name,
            "member_id": self.member_id,
            "transaction_id": self.transaction_id,
            "received_at": to_utc_z(self.received_at),
            "received_by_id": self.received_by_id,
            "processed_at": to_utc_z(self.processed_at),
            "notes": self.notes,
        }
