"""
Sale transaction tests.

Verifies:
- Totals: live sell price, line and header discounts, percent discount, tax
- Stock leaves inventory atomically with the transaction
- Member accrual on sale
- Every rejected sale leaves no trace (no transaction, stock unchanged)
"""

from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import (
    Member,
    MemberType,
    StockItem,
    StockStatus,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from jewelpos.services import stock_service, transaction_service
from jewelpos.validation import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def stock(catalog):
    """Two available rings (2.5 g, 2,750,000 each) in TK01-B1."""
    return stock_service.receive_stock(
        product_id=catalog["product"].id,
        location_id=catalog["shop"].id,
        storage_box_id=catalog["box"].id,
        quantity=2,
    )


def _sale(catalog, stock_ids, **extra):
    payload = {
        "location_id": catalog["shop"].id,
        "items": [{"stock_id": sid} for sid in stock_ids],
        "payment_method": "cash",
        "paid_amount": 10000000,
    }
    payload.update(extra)
    return payload


class TestComputeTotals:

    def test_literal_discount(self):
        discount, total = transaction_service.compute_totals(
            Decimal("1000000"), discount=Decimal("50000"), discount_percent=Decimal("0"), tax=Decimal("0"),
        )
        assert discount == Decimal("50000.00")
        assert total == Decimal("950000.00")

    def test_percent_discount_wins(self):
        discount, total = transaction_service.compute_totals(
            Decimal("2750000"), discount=Decimal("1"), discount_percent=Decimal("10"), tax=Decimal("11000"),
        )
        assert discount == Decimal("275000.00")
        assert total == Decimal("2486000.00")

    def test_half_up_rounding(self):
        discount, _ = transaction_service.compute_totals(
            Decimal("0.15"), discount=Decimal("0"), discount_percent=Decimal("50"), tax=Decimal("0"),
        )
        assert discount == Decimal("0.08")


class TestCreateSale:

    def test_sale_marks_stock_sold(self, catalog, stock, cashier_user):
        tx = transaction_service.create_sale(_sale(catalog, [s.id for s in stock]), cashier_id=cashier_user.id)

        assert tx.type == TransactionType.SALE
        assert tx.status == TransactionStatus.COMPLETED
        assert tx.transaction_code.startswith("SL")
        assert tx.sub_total == Decimal("5500000.00")
        assert tx.grand_total == Decimal("5500000.00")
        assert tx.change_amount == Decimal("4500000.00")
        assert len(tx.items) == 2

        for s in stock:
            row = db.session.get(StockItem, s.id)
            assert row.status == StockStatus.SOLD
            assert row.transaction_id == tx.id
            assert row.sold_at is not None

    def test_item_snapshot(self, catalog, stock, cashier_user):
        tx = transaction_service.create_sale(_sale(catalog, [stock[0].id]), cashier_id=cashier_user.id)
        item = tx.items[0]
        assert item.barcode == "CIN-24-001"
        assert item.item_name == "Cincin Polos 24K"
        assert item.weight == Decimal("2.500")
        assert item.price_per_gram == Decimal("1100000.00")
        assert item.unit_price == Decimal("2750000.00")

    def test_line_and_header_discounts(self, catalog, stock, cashier_user):
        payload = _sale(catalog, [], discount=100000, tax=27500, paid_amount=2700000)
        payload["items"] = [{"stock_id": stock[0].id, "discount": 50000}]
        tx = transaction_service.create_sale(payload, cashier_id=cashier_user.id)

        assert tx.sub_total == Decimal("2700000.00")
        assert tx.discount == Decimal("100000.00")
        assert tx.grand_total == Decimal("2627500.00")
        assert tx.change_amount == Decimal("72500.00")

    def test_transaction_codes_are_sequential(self, catalog, stock, cashier_user):
        first = transaction_service.create_sale(_sale(catalog, [stock[0].id]), cashier_id=cashier_user.id)
        second = transaction_service.create_sale(_sale(catalog, [stock[1].id]), cashier_id=cashier_user.id)
        assert first.transaction_code[:-5] == second.transaction_code[:-5]
        assert int(second.transaction_code[-5:]) == int(first.transaction_code[-5:]) + 1

    def test_member_accrual(self, catalog, member, cashier_user):
        # 2.5 g at 400,000/g = exactly 1,000,000
        catalog["category"].sell_price = Decimal("400000")
        db.session.commit()
        items = stock_service.receive_stock(
            product_id=catalog["product"].id,
            location_id=catalog["shop"].id,
            storage_box_id=catalog["box"].id,
            quantity=1,
        )

        transaction_service.create_sale(
            _sale(catalog, [items[0].id], member_id=member.id, paid_amount=1000000),
            cashier_id=cashier_user.id,
        )

        m = db.session.get(Member, member.id)
        assert m.points == 10
        assert m.total_purchase == Decimal("1000000.00")
        assert m.transaction_count == 1
        assert m.type == MemberType.REGULAR


class TestRejectedSales:

    def _assert_untouched(self, stock):
        assert db.session.query(Transaction).count() == 0
        for s in stock:
            row = db.session.get(StockItem, s.id)
            assert row.status == StockStatus.AVAILABLE
            assert row.transaction_id is None

    def test_already_sold(self, catalog, stock, cashier_user):
        transaction_service.create_sale(_sale(catalog, [stock[0].id]), cashier_id=cashier_user.id)

        with pytest.raises(ConflictError):
            transaction_service.create_sale(_sale(catalog, [stock[1].id, stock[0].id]), cashier_id=cashier_user.id)

        assert db.session.query(Transaction).count() == 1
        assert db.session.get(StockItem, stock[1].id).status == StockStatus.AVAILABLE

    def test_duplicate_stock_in_one_sale(self, catalog, stock, cashier_user):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(_sale(catalog, [stock[0].id, stock[0].id]), cashier_id=cashier_user.id)
        self._assert_untouched(stock)

    def test_stock_at_another_location(self, catalog, stock, cashier_user):
        stock_service.transfer_stock(
            stock_id=stock[0].id,
            to_location_id=catalog["warehouse"].id,
            to_box_id=catalog["warehouse_box"].id,
        )
        with pytest.raises(ValidationError):
            transaction_service.create_sale(_sale(catalog, [stock[0].id]), cashier_id=cashier_user.id)
        assert db.session.query(Transaction).count() == 0

    def test_unknown_stock(self, catalog, stock, cashier_user):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(_sale(catalog, [stock[0].id, 9999]), cashier_id=cashier_user.id)
        self._assert_untouched(stock)

    def test_insufficient_payment(self, catalog, stock, cashier_user):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(
                _sale(catalog, [stock[0].id], paid_amount=1000000), cashier_id=cashier_user.id,
            )
        self._assert_untouched(stock)

    def test_discount_above_sub_total(self, catalog, stock, cashier_user):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(
                _sale(catalog, [stock[0].id], discount=3000000), cashier_id=cashier_user.id,
            )
        self._assert_untouched(stock)

    def test_unknown_member(self, catalog, stock, cashier_user):
        with pytest.raises(NotFoundError):
            transaction_service.create_sale(
                _sale(catalog, [stock[0].id], member_id=9999), cashier_id=cashier_user.id,
            )
        self._assert_untouched(stock)

    @pytest.mark.parametrize(
        "override",
        [
            {"items": []},
            {"items": "abc"},
            {"payment_method": "bitcoin"},
            {"paid_amount": -1},
            {"discount_percent": 101},
        ],
    )
    def test_invalid_payload(self, catalog, stock, cashier_user, override):
        with pytest.raises(ValidationError):
            transaction_service.create_sale(_sale(catalog, [stock[0].id], **override), cashier_id=cashier_user.id)
        self._assert_untouched(stock)
