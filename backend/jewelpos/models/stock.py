from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .catalog import active_unique_index
from .enums import StockStatus, TransferStatus, enum_column


class StockItem(db.Model):
    """
    One physical, serialized piece of jewelry.

    STATUS: every change of `status` goes through a compare-and-set UPDATE in
    stock_service (WHERE status = <expected>), never through attribute
    assignment on a loaded row. sold -> available is reserved for
    transaction cancellation.

    PRICE: not stored; derived live from product weight x gold category price.
    """
    __tablename__ = "stocks"
    __table_args__ = (
        db.UniqueConstraint("serial_number", name="uq_stocks_serial_number"),
        db.Index("ix_stocks_location_status", "location_id", "status"),
        db.Index("ix_stocks_box_status", "storage_box_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    storage_box_id = db.Column(db.Integer, db.ForeignKey("storage_boxes.id"), nullable=False, index=True)

    # Never reassigned, not even after soft delete
    serial_number = db.Column(db.String(32), nullable=False)
    status = enum_column(StockStatus, nullable=False, default=StockStatus.AVAILABLE, index=True)

    notes = db.Column(db.String(500), nullable=True)
    supplier_name = db.Column(db.String(100), nullable=True)
    received_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    received_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    sold_at = db.Column(db.DateTime(timezone=True), nullable=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=True, index=True)

    barcode_printed = db.Column(db.Boolean, nullable=False, default=False)
    barcode_printed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    product = db.relationship("Product", backref=db.backref("stocks", lazy=True))
    location = db.relationship("Location", backref=db.backref("stocks", lazy=True))
    storage_box = db.relationship("StorageBox", backref=db.backref("stocks", lazy=True))

    def __repr__(self) -> str:
        return f"<StockItem id={self.id} serial={self.serial_number!r} status={self.status}>"

    def to_dict(self, include_product: bool = False) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "location_id": self.location_id,
            "storage_box_id": self.storage_box_id,
            "serial_number": self.serial_number,
            "status": self.status.value if self.status else None,
            "notes": self.notes,
            "supplier_name": self.supplier_name,
            "received_at": to_utc_z(self.received_at),
            "sold_at": to_utc_z(self.sold_at),
            "transaction_id": self.transaction_id,
            "barcode_printed": self.barcode_printed,
            "barcode_printed_at": to_utc_z(self.barcode_printed_at),
        }
        if include_product and self.product is not None:
            data["product"] = self.product.to_dict()
        return data


class StockTransfer(db.Model):
    """
    Record of one stock item moving between locations/boxes.

    Written in the same database transaction as the stock move. Transfers
    complete immediately; PENDING / CANCELLED are reserved for a future
    two-step flow.
    """
    __tablename__ = "stock_transfers"
    __table_args__ = (
        active_unique_index("uq_stock_transfers_number", "transfer_number"),
        db.Index("ix_stock_transfers_stock_transferred", "stock_id", "transferred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transfer_number = db.Column(db.String(32), nullable=False)
    stock_id = db.Column(db.Integer, db.ForeignKey("stocks.id"), nullable=False, index=True)

    from_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    from_box_id = db.Column(db.Integer, db.ForeignKey("storage_boxes.id"), nullable=True)
    to_location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    to_box_id = db.Column(db.Integer, db.ForeignKey("storage_boxes.id"), nullable=True)

    transferred_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    transferred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    notes = db.Column(db.String(500), nullable=True)
    status = enum_column(TransferStatus, nullable=False, default=TransferStatus.COMPLETED)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    stock = db.relationship("StockItem", backref=db.backref("transfers", lazy=True))
    from_location = db.relationship("Location", foreign_keys=[from_location_id])
    to_location = db.relationship("Location", foreign_keys=[to_location_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transfer_number": self.transfer_number,
            "stock_id": self.stock_id,
            "from_location_id": self.from_location_id,
            "from_box_id": self.from_box_id,
            "to_location_id": self.to_location_id,
            "to_box_id": self.to_box_id,
            "transferred_by_id": self.transferred_by_id,
            "transferred_at": to_utc_z(self.transferred_at),
            "notes": self.notes,
            "status": self.status.value if self.status else None,
        }
