"""
Transaction cancellation tests.

A completed transaction can be cancelled exactly once. Sold stock returns to
available; loyalty figures and raw materials are left as they are.
"""

from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import (
    LedgerEvent,
    Member,
    RawMaterial,
    StockItem,
    StockStatus,
    Transaction,
    TransactionStatus,
)
from jewelpos.services import stock_service, transaction_service
from jewelpos.validation import ConflictError, NotFoundError


@pytest.fixture
def sold(catalog, member, cashier_user):
    items = stock_service.receive_stock(
        product_id=catalog["product"].id,
        location_id=catalog["shop"].id,
        storage_box_id=catalog["box"].id,
        quantity=2,
    )
    tx = transaction_service.create_sale({
        "location_id": catalog["shop"].id,
        "member_id": member.id,
        "items": [{"stock_id": s.id} for s in items],
        "payment_method": "transfer",
        "paid_amount": 5500000,
    }, cashier_id=cashier_user.id)
    return tx, items


class TestCancelSale:

    def test_restores_stock(self, sold, admin_user):
        tx, items = sold
        cancelled = transaction_service.cancel_transaction(tx.id, user_id=admin_user.id, reason="Salah input")

        assert cancelled.status == TransactionStatus.CANCELLED
        assert cancelled.cancelled_by_id == admin_user.id
        assert cancelled.cancel_reason == "Salah input"
        assert cancelled.cancelled_at is not None

        for s in items:
            row = db.session.get(StockItem, s.id)
            assert row.status == StockStatus.AVAILABLE
            assert row.transaction_id is None
            assert row.sold_at is None

        restored = db.session.query(LedgerEvent).filter_by(event_type="STOCK_RESTORED").count()
        assert restored == 2

    def test_restored_stock_can_be_sold_again(self, catalog, sold, admin_user, cashier_user):
        tx, items = sold
        transaction_service.cancel_transaction(tx.id, user_id=admin_user.id)

        again = transaction_service.create_sale({
            "location_id": catalog["shop"].id,
            "items": [{"stock_id": items[0].id}],
            "payment_method": "cash",
            "paid_amount": 2750000,
        }, cashier_id=cashier_user.id)
        assert db.session.get(StockItem, items[0].id).transaction_id == again.id

    def test_member_accrual_is_kept(self, sold, member, admin_user):
        tx, _ = sold
        before = db.session.get(Member, member.id).points
        transaction_service.cancel_transaction(tx.id, user_id=admin_user.id)
        assert db.session.get(Member, member.id).points == before

    def test_cannot_cancel_twice(self, sold, admin_user):
        tx, _ = sold
        transaction_service.cancel_transaction(tx.id, user_id=admin_user.id)
        with pytest.raises(ConflictError):
            transaction_service.cancel_transaction(tx.id, user_id=admin_user.id)
        assert db.session.query(LedgerEvent).filter_by(event_type="TRANSACTION_CANCELLED").count() == 1

    def test_unknown_transaction(self, app, admin_user):
        with pytest.raises(NotFoundError):
            transaction_service.cancel_transaction(9999, user_id=admin_user.id)


class TestCancelPurchase:

    def test_raw_materials_are_kept(self, catalog, cashier_user, admin_user):
        tx = transaction_service.create_purchase({
            "location_id": catalog["shop"].id,
            "payment_method": "cash",
            "save_as_raw_material": True,
            "items": [{"gold_category_id": catalog["category"].id, "weight": 3, "price_per_gram": 900000}],
        }, cashier_id=cashier_user.id)

        cancelled = transaction_service.cancel_transaction(tx.id, user_id=admin_user.id)

        assert cancelled.status == TransactionStatus.CANCELLED
        assert cancelled.grand_total == Decimal("2700000.00")
        assert db.session.query(RawMaterial).filter_by(transaction_id=tx.id).count() == 1
        assert db.session.get(Transaction, tx.id).status == TransactionStatus.CANCELLED
