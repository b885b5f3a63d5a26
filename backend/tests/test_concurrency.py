"""
Concurrency tests against a file-backed SQLite database.

Each worker thread runs in its own app context (and therefore its own
session and connection), so these exercise the real writer lock.
"""

import threading
from decimal import Decimal

import pytest

from jewelpos import create_app
from jewelpos.extensions import db
from jewelpos.models import Member, StockItem, StockStatus, StockTransfer, Transaction, User
from jewelpos.services import catalog_service, member_service, stock_service, transaction_service
from jewelpos.validation import ConflictError, ServiceError


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'jewelpos.sqlite3'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 15}},
    })
    with app.app_context():
        db.create_all()
        shop = catalog_service.create_location(code="TK01", name="Toko Pusat")
        warehouse = catalog_service.create_location(code="GD01", name="Gudang")
        box = catalog_service.create_storage_box(location_id=shop.id, code="TK01-B1")
        warehouse_box = catalog_service.create_storage_box(location_id=warehouse.id, code="GD01-B1")
        category = catalog_service.create_gold_category(
            code="24K", name="Emas 24 Karat", buy_price=Decimal("1000000"), sell_price=Decimal("1100000"),
        )
        product = catalog_service.create_product(
            barcode="CIN-24-001", name="Cincin", gold_category_id=category.id, weight=Decimal("2.5"),
        )
        user = User(username="cashier", email="cashier@jewelpos.local", password_hash="x", is_active=True)
        db.session.add(user)
        db.session.commit()

        stock = stock_service.receive_stock(
            product_id=product.id, location_id=shop.id, storage_box_id=box.id, quantity=1,
        )[0]
        ids = {
            "shop": shop.id,
            "warehouse": warehouse.id,
            "warehouse_box": warehouse_box.id,
            "stock": stock.id,
            "user": user.id,
        }
        db.session.remove()

    yield app, ids

    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def _run_concurrently(app, workers):
    """Start all workers at once; returns each worker's result or exception."""
    barrier = threading.Barrier(len(workers))
    results = [None] * len(workers)

    def _target(idx, fn):
        with app.app_context():
            barrier.wait()
            try:
                results[idx] = fn()
            except ServiceError as e:
                results[idx] = e
            finally:
                db.session.remove()

    threads = [threading.Thread(target=_target, args=(i, fn)) for i, fn in enumerate(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return results


def test_double_sell_has_one_winner(file_app):
    app, ids = file_app

    def _sell():
        return transaction_service.create_sale({
            "location_id": ids["shop"],
            "items": [{"stock_id": ids["stock"]}],
            "payment_method": "cash",
            "paid_amount": 2750000,
        }, cashier_id=ids["user"]).id

    results = _run_concurrently(app, [_sell, _sell])

    winners = [r for r in results if isinstance(r, int)]
    losers = [r for r in results if isinstance(r, ConflictError)]
    assert len(winners) == 1
    assert len(losers) == 1

    with app.app_context():
        assert db.session.query(Transaction).count() == 1
        stock = db.session.get(StockItem, ids["stock"])
        assert stock.status == StockStatus.SOLD
        assert stock.transaction_id == winners[0]


def test_sell_and_transfer_race(file_app):
    app, ids = file_app

    def _sell():
        return transaction_service.create_sale({
            "location_id": ids["shop"],
            "items": [{"stock_id": ids["stock"]}],
            "payment_method": "cash",
            "paid_amount": 2750000,
        }, cashier_id=ids["user"]).id

    def _transfer():
        return stock_service.transfer_stock(
            stock_id=ids["stock"], to_location_id=ids["warehouse"], to_box_id=ids["warehouse_box"],
        ).id

    results = _run_concurrently(app, [_sell, _transfer])

    # Exactly one of the two writers wins; whichever loses sees a conflict or
    # (for the sale) a stock that is no longer at this location
    failures = [r for r in results if isinstance(r, ServiceError)]
    assert len(failures) == 1

    with app.app_context():
        sales = db.session.query(Transaction).count()
        transfers = db.session.query(StockTransfer).count()
        assert sales + transfers == 1


def test_concurrent_member_codes_are_unique(file_app):
    app, _ = file_app
    workers = [
        (lambda n=n: member_service.create_member({"name": f"Member {n}"}).member_code)
        for n in range(6)
    ]
    results = _run_concurrently(app, workers)

    assert all(isinstance(r, str) for r in results), results
    assert len(set(results)) == 6

    with app.app_context():
        assert db.session.query(Member).count() == 6
