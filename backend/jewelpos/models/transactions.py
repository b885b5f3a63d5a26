from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import to_number
from .enums import PaymentMethod, TransactionStatus, TransactionType, enum_column


class Transaction(db.Model):
    """
    Sale or purchase ("setor") document.

    FINANCIALS: sub_total / discount / tax / grand_total / paid / change are
    computed once by transaction_service and never updated afterwards.
    The only permitted mutation is completed -> cancelled (once), which
    stamps the cancel audit columns.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_code", name="uq_transactions_code"),
        db.Index("ix_transactions_location_date", "location_id", "transaction_date"),
        db.Index("ix_transactions_type_status", "type", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_code = db.Column(db.String(32), nullable=False)
    type = enum_column(TransactionType, nullable=False)

    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    sub_total = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    discount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=Decimal("0"))
    tax = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    grand_total = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))

    payment_method = enum_column(PaymentMethod, nullable=False, default=PaymentMethod.CASH)
    paid_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    change_amount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))

    customer_name = db.Column(db.String(100), nullable=True)
    customer_phone = db.Column(db.String(20), nullable=True)
    notes = db.Column(db.String(500), nullable=True)

    status = enum_column(TransactionStatus, nullable=False, default=TransactionStatus.COMPLETED, index=True)
    transaction_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    # Void audit trail
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cancel_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    member = db.relationship("Member", backref=db.backref("transactions", lazy=True))
    location = db.relationship("Location")
    cashier = db.relationship("User", foreign_keys=[cashier_id])
    items = db.relationship(
        "TransactionItem",
        backref="transaction",
        lazy=True,
        order_by="TransactionItem.id",
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} code={self.transaction_code!r} type={self.type}>"

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "transaction_code": self.transaction_code,
            "type": self.type.value if self.type else None,
            "member_id": self.member_id,
            "location_id": self.location_id,
            "cashier_id": self.cashier_id,
            "sub_total": to_number(self.sub_total),
            "discount": to_number(self.discount),
            "discount_percent": to_number(self.discount_percent),
            "tax": to_number(self.tax),
            "grand_total": to_number(self.grand_total),
            "payment_method": self.payment_method.value if self.payment_method else None,
            "paid_amount": to_number(self.paid_amount),
            "change_amount": to_number(self.change_amount),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "notes": self.notes,
            "status": self.status.value if self.status else None,
            "transaction_date": to_utc_z(self.transaction_date),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "cancelled_by_id": self.cancelled_by_id,
            "cancel_reason": self.cancel_reason,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class TransactionItem(db.Model):
    """
    One line of a transaction. Name, barcode, weight and prices are
    snapshots taken at transaction time.
    """
    __tablename__ = "transaction_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)

    stock_id = db.Column(db.Integer, db.ForeignKey("stocks.id"), nullable=True, index=True)             # sale
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True)
    gold_category_id = db.Column(db.Integer, db.ForeignKey("gold_categories.id"), nullable=True)   # purchase

    item_name = db.Column(db.String(150), nullable=False)
    barcode = db.Column(db.String(50), nullable=True)
    weight = db.Column(db.Numeric(12, 3), nullable=False, default=Decimal("0"))
    price_per_gram = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    unit_price = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    quantity = db.Column(db.Integer, nullable=False, default=1)
    discount = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    sub_total = db.Column(db.Numeric(18, 2), nullable=False, default=Decimal("0"))
    notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    stock = db.relationship("StockItem")
    gold_category = db.relationship("GoldCategory")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "stock_id": self.stock_id,
            "product_id": self.product_id,
            "gold_category_id": self.gold_category_id,
            "item_name": self.item_name,
            "barcode": self.barcode,
            "weight": to_number(self.weight),
            "price_per_gram": to_number(self.price_per_gram),
            "unit_price": to_number(self.unit_price),
            "quantity": self.quantity,
            "discount": to_number(self.discount),
            "sub_total": to_number(self.sub_total),
            "notes": self.notes,
        }
