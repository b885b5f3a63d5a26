from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_number
from .enums import LocationType, enum_column


def active_unique_index(name: str, *columns: str) -> db.Index:
    """Unique only among rows that are not soft-deleted."""
    return db.Index(
        name,
        *columns,
        unique=True,
        sqlite_where=db.text("deleted_at IS NULL"),
        postgresql_where=db.text("deleted_at IS NULL"),
    )


class GoldCategory(db.Model):
    """
    Gold purity grade carrying the live buy/sell price per gram.

    PRICES: buy_price / sell_price are only changed through
    price_service.bulk_update_prices so every change has a PriceDetail row.
    """
    __tablename__ = "gold_categories"
    __table_args__ = (
        active_unique_index("uq_gold_categories_code_active", "code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False)        # e.g. "375", "750", "999"
    name = db.Column(db.String(50), nullable=False)        # e.g. "9K", "18K", "24K"
    purity = db.Column(db.Numeric(6, 4), nullable=True)    # e.g. 0.7500
    buy_price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    sell_price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    description = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<GoldCategory id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "purity": to_number(self.purity),
            "buy_price": to_number(self.buy_price),
            "sell_price": to_number(self.sell_price),
            "description": self.description,
            "is_active": self.is_active,
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """Jewelry design master data; one Product has many serialized StockItems."""
    __tablename__ = "products"
    __table_args__ = (
        active_unique_index("uq_products_barcode_active", "barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(20), nullable=False, default="other", index=True)       # gelang, cincin, kalung, ...
    category = db.Column(db.String(20), nullable=False, default="dewasa", index=True)  # dewasa, anak, unisex
    gold_category_id = db.Column(db.Integer, db.ForeignKey("gold_categories.id"), nullable=False, index=True)
    weight = db.Column(db.Numeric(12, 3), nullable=False)  # grams
    description = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    gold_category = db.relationship("GoldCategory", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "type": self.type,
            "category": self.category,
            "gold_category_id": self.gold_category_id,
            "weight": to_number(self.weight),
            "description": self.description,
            "is_active": self.is_active,
        }


class Location(db.Model):
    """Warehouse (gudang) or shop (toko)."""
    __tablename__ = "locations"
    __table_args__ = (
        active_unique_index("uq_locations_code_active", "code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    type = enum_column(LocationType, nullable=False, default=LocationType.SHOP, index=True)
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type.value if self.type else None,
            "address": self.address,
            "phone": self.phone,
            "is_active": self.is_active,
        }


class StorageBox(db.Model):
    """A tray/box inside one location; stock always sits in exactly one box."""
    __tablename__ = "storage_boxes"
    __table_args__ = (
        db.Index("ix_storage_boxes_location_code", "location_id", "code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    code = db.Column(db.String(20), nullable=False)   # e.g. "A1"
    name = db.Column(db.String(50), nullable=False)
    capacity = db.Column(db.Integer, nullable=False, default=0)  # 0 = unlimited
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    location = db.relationship("Location", backref=db.backref("boxes", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "location_id": self.location_id,
            "code": self.code,
            "name": self.name,
            "capacity": self.capacity,
            "is_active": self.is_active,
        }
