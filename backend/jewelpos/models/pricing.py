from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_number


class PriceUpdateLog(db.Model):
    """
    One bulk gold price revision.

    IMMUTABLE: append-only. Together with its PriceDetail rows it is the
    full history of every buy/sell price a gold category has carried.
    """
    __tablename__ = "price_update_logs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    update_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    updated_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    updated_by = db.relationship("User")
    details = db.relationship(
        "PriceDetail",
        backref="price_update_log",
        lazy=True,
        order_by="PriceDetail.id",
    )

    def to_dict(self, include_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "update_date": to_utc_z(self.update_date),
            "updated_by_id": self.updated_by_id,
            "updated_by": self.updated_by.username if self.updated_by else None,
            "notes": self.notes,
        }
        if include_details:
            data["details"] = [d.to_dict() for d in self.details]
        return data


class PriceDetail(db.Model):
    """Old/new buy and sell price of one gold category within a revision."""
    __tablename__ = "price_details"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    price_update_log_id = db.Column(db.Integer, db.ForeignKey("price_update_logs.id"), nullable=False, index=True)
    gold_category_id = db.Column(db.Integer, db.ForeignKey("gold_categories.id"), nullable=False, index=True)

    old_buy_price = db.Column(db.Numeric(18, 2), nullable=False)
    new_buy_price = db.Column(db.Numeric(18, 2), nullable=False)
    old_sell_price = db.Column(db.Numeric(18, 2), nullable=False)
    new_sell_price = db.Column(db.Numeric(18, 2), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    gold_category = db.relationship("GoldCategory")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "price_update_log_id": self.price_update_log_id,
            "gold_category_id": self.gold_category_id,
            "gold_category_code": self.gold_category.code if self.gold_category else None,
            "old_buy_price": to_number(self.old_buy_price),
            "new_buy_price": to_number(self.new_buy_price),
            "old_sell_price": to_number(self.old_sell_price),
            "new_sell_price": to_number(self.new_sell_price),
        }
