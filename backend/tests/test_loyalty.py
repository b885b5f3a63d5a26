"""
Loyalty accrual tests.

Verifies:
- Point rules (floor of spend / 100,000 and sell / 200,000)
- Tier thresholds follow total_purchase only
- Recalculation replaces drifted figures with values derived from
  completed transactions
"""

from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import Member, MemberType
from jewelpos.services import loyalty_service, transaction_service, stock_service


class TestPointRules:

    @pytest.mark.parametrize(
        "amount,points",
        [
            (Decimal("0"), 0),
            (Decimal("99999.99"), 0),
            (Decimal("100000"), 1),
            (Decimal("1000000"), 10),
            (Decimal("2750000"), 27),
            (Decimal("-500000"), 0),
        ],
    )
    def test_points_from_purchase(self, amount, points):
        assert loyalty_service.points_from_purchase(amount) == points

    @pytest.mark.parametrize(
        "amount,points",
        [
            (Decimal("199999"), 0),
            (Decimal("200000"), 1),
            (Decimal("1000000"), 5),
        ],
    )
    def test_points_from_sell(self, amount, points):
        assert loyalty_service.points_from_sell(amount) == points


class TestTiers:

    @pytest.mark.parametrize(
        "total,tier",
        [
            (Decimal("0"), MemberType.REGULAR),
            (Decimal("19999999.99"), MemberType.REGULAR),
            (Decimal("20000000"), MemberType.SILVER),
            (Decimal("50000000"), MemberType.GOLD),
            (Decimal("99999999"), MemberType.GOLD),
            (Decimal("100000000"), MemberType.PLATINUM),
        ],
    )
    def test_tier_for(self, total, tier):
        assert loyalty_service.tier_for(total) == tier

    def test_apply_sale_promotes(self):
        member = Member(total_purchase=Decimal("19500000"), total_sell=Decimal("0"), points=195, transaction_count=4)
        loyalty_service.apply_sale(member, Decimal("600000"))
        assert member.total_purchase == Decimal("20100000.00")
        assert member.points == 201
        assert member.transaction_count == 5
        assert member.type == MemberType.SILVER

    def test_apply_purchase_does_not_change_tier(self):
        member = Member(
            type=MemberType.REGULAR,
            total_purchase=Decimal("0"),
            total_sell=Decimal("0"),
            points=0,
            transaction_count=0,
        )
        loyalty_service.apply_purchase(member, Decimal("30000000"))
        assert member.total_sell == Decimal("30000000.00")
        assert member.points == 150
        assert member.transaction_count == 1
        assert member.type == MemberType.REGULAR


class TestRecalculation:

    def test_recalculate_replaces_drifted_figures(self, catalog, member, cashier_user):
        items = stock_service.receive_stock(
            product_id=catalog["product"].id,
            location_id=catalog["shop"].id,
            storage_box_id=catalog["box"].id,
            quantity=1,
        )
        transaction_service.create_sale({
            "location_id": catalog["shop"].id,
            "member_id": member.id,
            "items": [{"stock_id": items[0].id}],
            "payment_method": "cash",
            "paid_amount": 3000000,
        }, cashier_id=cashier_user.id)

        # Simulate drift
        m = db.session.get(Member, member.id)
        m.points = 999
        m.total_purchase = Decimal("1")
        m.transaction_count = 42
        db.session.commit()

        updated = loyalty_service.recalculate_member_stats(member.id)
        assert updated == 1

        m = db.session.get(Member, member.id)
        # 2.5 g x 1,100,000 = 2,750,000
        assert m.total_purchase == Decimal("2750000.00")
        assert m.points == 27
        assert m.transaction_count == 1
        assert m.type == MemberType.REGULAR

    def test_cancelled_transactions_are_excluded(self, catalog, member, cashier_user):
        items = stock_service.receive_stock(
            product_id=catalog["product"].id,
            location_id=catalog["shop"].id,
            storage_box_id=catalog["box"].id,
            quantity=1,
        )
        tx = transaction_service.create_sale({
            "location_id": catalog["shop"].id,
            "member_id": member.id,
            "items": [{"stock_id": items[0].id}],
            "payment_method": "cash",
            "paid_amount": 3000000,
        }, cashier_id=cashier_user.id)
        transaction_service.cancel_transaction(tx.id, user_id=cashier_user.id)

        # Cancellation leaves accrual in place; the sweep removes it
        m = db.session.get(Member, member.id)
        assert m.points == 27

        loyalty_service.recalculate_member_stats()
        m = db.session.get(Member, member.id)
        assert m.points == 0
        assert m.total_purchase == Decimal("0.00")
        assert m.transaction_count == 0
