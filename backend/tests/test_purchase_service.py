"""
Purchase ("setor") transaction tests: the store buys gold from a customer.
"""

from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import (
    Member,
    MemberType,
    RawMaterial,
    RawMaterialCondition,
    RawMaterialStatus,
    Transaction,
    TransactionType,
)
from jewelpos.services import transaction_service
from jewelpos.validation import NotFoundError, ValidationError


def _purchase(catalog, items=None, **extra):
    payload = {
        "location_id": catalog["shop"].id,
        "payment_method": "cash",
        "items": items or [{
            "gold_category_id": catalog["category"].id,
            "weight": 5,
            "price_per_gram": 950000,
        }],
    }
    payload.update(extra)
    return payload


class TestParsePurity:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("75%", Decimal("75")),
            ("24K", Decimal("24")),
            ("99.9", Decimal("99.9")),
            ("999.9", None),
            ("999999", None),
            ("emas tua", None),
            ("", None),
            (None, None),
        ],
    )
    def test_leading_number(self, raw, expected):
        assert transaction_service.parse_purity(raw) == expected


class TestCreatePurchase:

    def test_totals(self, catalog, cashier_user):
        tx = transaction_service.create_purchase(_purchase(catalog, items=[
            {"gold_category_id": catalog["category"].id, "weight": 5, "price_per_gram": 950000},
            {"purity": "75%", "weight": "1.255", "price_per_gram": 700000},
        ]), cashier_id=cashier_user.id)

        assert tx.type == TransactionType.PURCHASE
        assert tx.transaction_code.startswith("PR")
        # 4,750,000 + 878,500
        assert tx.grand_total == Decimal("5628500.00")
        assert tx.sub_total == tx.grand_total
        assert tx.paid_amount == tx.grand_total
        assert tx.change_amount == Decimal("0")
        assert tx.discount == Decimal("0")
        assert tx.tax == Decimal("0")

        first, second = tx.items
        assert first.gold_category_id == catalog["category"].id
        assert first.item_name == "Gold deposit Emas 24 Karat"
        assert second.gold_category_id is None
        assert second.item_name == "Gold deposit Gold 75%"
        assert second.stock_id is None

    def test_no_raw_material_by_default(self, catalog, cashier_user):
        transaction_service.create_purchase(_purchase(catalog), cashier_id=cashier_user.id)
        assert db.session.query(RawMaterial).count() == 0

    def test_save_as_raw_material(self, catalog, member, cashier_user):
        tx = transaction_service.create_purchase(_purchase(catalog, items=[
            {
                "gold_category_id": catalog["category"].id,
                "weight_gross": 5.2,
                "shrinkage_percent": 4,
                "weight": 5,
                "price_per_gram": 950000,
                "condition": "scratched",
                "purity": "99%",
                "notes": "cincin patah",
            },
            {"purity": "75%", "weight": 2, "price_per_gram": 700000},
        ], save_as_raw_material=True, member_id=member.id), cashier_id=cashier_user.id)

        materials = db.session.query(RawMaterial).order_by(RawMaterial.id).all()
        assert len(materials) == 2

        first = materials[0]
        assert first.code.startswith("RM")
        assert first.transaction_id == tx.id
        assert first.member_id == member.id
        assert first.location_id == catalog["shop"].id
        assert first.weight_grams == Decimal("5.000")
        assert first.weight_gross == Decimal("5.200")
        assert first.shrinkage_percent == Decimal("4")
        assert first.purity == Decimal("99")
        assert first.condition == RawMaterialCondition.SCRATCHED
        assert first.status == RawMaterialStatus.AVAILABLE
        assert first.total_buy_price == Decimal("4750000.00")
        assert first.received_by_id == cashier_user.id

        # Gross weight falls back to the net weight
        assert materials[1].weight_gross == Decimal("2.000")
        assert materials[1].gold_category_id is None

    def test_member_accrual_uses_sell_rate(self, catalog, member, cashier_user):
        transaction_service.create_purchase(
            _purchase(catalog, member_id=member.id), cashier_id=cashier_user.id,
        )
        m = db.session.get(Member, member.id)
        # 4,750,000 / 200,000
        assert m.points == 23
        assert m.total_sell == Decimal("4750000.00")
        assert m.total_purchase == Decimal("0.00")
        assert m.transaction_count == 1
        assert m.type == MemberType.REGULAR


class TestRejectedPurchases:

    def test_unknown_gold_category(self, catalog, cashier_user):
        with pytest.raises(NotFoundError):
            transaction_service.create_purchase(_purchase(catalog, items=[
                {"gold_category_id": 9999, "weight": 1, "price_per_gram": 100},
            ], save_as_raw_material=True), cashier_id=cashier_user.id)
        assert db.session.query(Transaction).count() == 0
        assert db.session.query(RawMaterial).count() == 0

    @pytest.mark.parametrize(
        "item",
        [
            {"weight": 0, "price_per_gram": 100},
            {"weight": -1, "price_per_gram": 100},
            {"weight": 1, "price_per_gram": -5},
            {"weight": 1, "price_per_gram": 100, "shrinkage_percent": 120},
            {"weight": 1, "price_per_gram": 100, "condition": "melted"},
            {"weight": 5, "weight_gross": 4, "price_per_gram": 100},
            {"price_per_gram": 100},
        ],
    )
    def test_invalid_line(self, catalog, cashier_user, item):
        with pytest.raises(ValidationError):
            transaction_service.create_purchase(_purchase(catalog, items=[item]), cashier_id=cashier_user.id)
        assert db.session.query(Transaction).count() == 0

    def test_missing_payment_method(self, catalog, cashier_user):
        payload = _purchase(catalog)
        del payload["payment_method"]
        with pytest.raises(ValidationError):
            transaction_service.create_purchase(payload, cashier_id=cashier_user.id)


class TestRawMaterialPurity:

    def test_out_of_range_purity_is_not_stored(self, catalog, cashier_user):
        tx = transaction_service.create_purchase(_purchase(catalog, items=[
            {"purity": "999999", "weight": 1, "price_per_gram": 900000},
        ], save_as_raw_material=True), cashier_id=cashier_user.id)

        material = db.session.query(RawMaterial).one()
        assert material.purity is None
        assert "Purity: 999999." in tx.items[0].notes

    def test_gross_weight_may_equal_net(self, catalog, cashier_user):
        transaction_service.create_purchase(_purchase(catalog, items=[
            {"gold_category_id": catalog["category"].id, "weight": 3, "weight_gross": 3, "price_per_gram": 900000},
        ], save_as_raw_material=True), cashier_id=cashier_user.id)
        assert db.session.query(RawMaterial).one().weight_gross == Decimal("3.000")
