"""
Gold price revision tests.

Verifies:
- A bulk update writes one log with old/new values per category
- The whole update is atomic
- The daily "prices updated today?" check honours the configured time zone
"""

from datetime import datetime
from decimal import Decimal

import pytest

from jewelpos.extensions import db
from jewelpos.models import GoldCategory, PriceDetail, PriceUpdateLog
from jewelpos.services import catalog_service, price_service, stock_service
from jewelpos.validation import NotFoundError, ValidationError


@pytest.fixture
def second_category(catalog):
    category = catalog_service.create_gold_category(
        code="17K",
        name="Emas 17 Karat",
        purity=Decimal("0.7500"),
        buy_price=Decimal("780000"),
        sell_price=Decimal("860000"),
    )
    db.session.commit()
    return category


class TestBulkUpdate:

    def test_updates_prices_and_logs_details(self, catalog, second_category, admin_user):
        log = price_service.bulk_update_prices([
            {"gold_category_id": catalog["category"].id, "buy_price": 1050000, "sell_price": 1150000},
            {"gold_category_id": second_category.id, "buy_price": "800000", "sell_price": "880000.50"},
        ], notes="Harga pagi", user_id=admin_user.id)

        assert log.updated_by_id == admin_user.id
        assert log.notes == "Harga pagi"

        details = db.session.query(PriceDetail).filter_by(price_update_log_id=log.id).order_by(PriceDetail.id).all()
        assert len(details) == 2
        assert details[0].old_buy_price == Decimal("1000000.00")
        assert details[0].new_buy_price == Decimal("1050000.00")
        assert details[0].old_sell_price == Decimal("1100000.00")
        assert details[0].new_sell_price == Decimal("1150000.00")

        assert db.session.get(GoldCategory, second_category.id).sell_price == Decimal("880000.50")

    def test_stock_prices_follow_revision(self, catalog, admin_user):
        item = stock_service.receive_stock(
            product_id=catalog["product"].id,
            location_id=catalog["shop"].id,
            storage_box_id=catalog["box"].id,
            quantity=1,
        )[0]
        price_service.bulk_update_prices([
            {"gold_category_id": catalog["category"].id, "buy_price": 1000000, "sell_price": 1200000},
        ], user_id=admin_user.id)

        assert stock_service.compute_sell_price(stock_service.get_stock(item.id)) == Decimal("3000000.00")

    def test_unknown_category_rolls_back_everything(self, catalog, admin_user):
        with pytest.raises(NotFoundError):
            price_service.bulk_update_prices([
                {"gold_category_id": catalog["category"].id, "buy_price": 1, "sell_price": 2},
                {"gold_category_id": 9999, "buy_price": 1, "sell_price": 2},
            ], user_id=admin_user.id)

        assert db.session.query(PriceUpdateLog).count() == 0
        assert db.session.query(PriceDetail).count() == 0
        assert db.session.get(GoldCategory, catalog["category"].id).sell_price == Decimal("1100000.00")

    @pytest.mark.parametrize(
        "entries",
        [
            [],
            "not-a-list",
            [42],
            [{"gold_category_id": 1, "buy_price": -1, "sell_price": 2}],
            [{"gold_category_id": 1, "buy_price": 1}],
            [
                {"gold_category_id": 1, "buy_price": 1, "sell_price": 2},
                {"gold_category_id": 1, "buy_price": 3, "sell_price": 4},
            ],
        ],
    )
    def test_rejects_invalid_entries(self, catalog, entries):
        with pytest.raises(ValidationError):
            price_service.bulk_update_prices(entries)
        assert db.session.query(PriceUpdateLog).count() == 0


class TestPriceCheck:

    def test_needs_update_without_history(self, catalog):
        status = price_service.check_price_update_needed()
        assert status["needs_update"] is True
        assert status["last_update"] is None
        assert status["timezone"] == "Asia/Jakarta"
        assert [c["code"] for c in status["categories"]] == ["24K"]

    def test_no_update_needed_after_revision(self, catalog, admin_user):
        price_service.bulk_update_prices([
            {"gold_category_id": catalog["category"].id, "buy_price": 1, "sell_price": 2},
        ], user_id=admin_user.id)

        status = price_service.check_price_update_needed()
        assert status["needs_update"] is False
        assert status["last_updated_by"] == "admin"

    def test_local_day_boundary(self, catalog, admin_user):
        log = PriceUpdateLog(update_date=datetime(2026, 10, 18, 16, 30), updated_by_id=admin_user.id)
        db.session.add(log)
        db.session.commit()

        # 16:30 UTC on the 18th is 23:30 in Jakarta (UTC+7), still the 18th there
        assert price_service.check_price_update_needed(now=datetime(2026, 10, 18, 16, 45))["needs_update"] is False
        # 17:30 UTC is already the 19th in Jakarta
        assert price_service.check_price_update_needed(now=datetime(2026, 10, 18, 17, 30))["needs_update"] is True
        # ...but still the 18th in UTC
        assert price_service.check_price_update_needed(
            tz="UTC", now=datetime(2026, 10, 18, 17, 30),
        )["needs_update"] is False

    def test_unknown_time_zone(self, catalog):
        with pytest.raises(ValidationError):
            price_service.check_price_update_needed(tz="Mars/Olympus")


class TestPriceLogs:

    def test_list_and_get(self, catalog, admin_user):
        first = price_service.bulk_update_prices([
            {"gold_category_id": catalog["category"].id, "buy_price": 1, "sell_price": 2},
        ], user_id=admin_user.id)
        second = price_service.bulk_update_prices([
            {"gold_category_id": catalog["category"].id, "buy_price": 3, "sell_price": 4},
        ], user_id=admin_user.id)

        logs = price_service.list_price_update_logs()
        assert [log.id for log in logs] == [second.id, first.id]
        assert price_service.get_price_update_log(first.id).id == first.id

        with pytest.raises(NotFoundError):
            price_service.get_price_update_log(9999)
