"""
Migration tests: the initial revision must build the same schema as the models.
"""

from pathlib import Path

import pytest
from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from flask_migrate import upgrade
from sqlalchemy import inspect

from jewelpos import create_app
from jewelpos.extensions import db

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


@pytest.fixture
def migrated_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'migrated.sqlite3'}",
    })
    with app.app_context():
        upgrade(directory=str(MIGRATIONS_DIR))
        yield app
        db.session.remove()
        db.engine.dispose()


def test_upgrade_matches_models(migrated_app):
    with db.engine.connect() as conn:
        diff = compare_metadata(MigrationContext.configure(conn), db.metadata)
    assert diff == []


def test_lookup_indexes_exist(migrated_app):
    inspector = inspect(db.engine)
    stock_indexes = {ix["name"] for ix in inspector.get_indexes("stocks")}
    assert {"ix_stocks_status", "ix_stocks_location_id", "ix_stocks_storage_box_id"} <= stock_indexes
    transaction_indexes = {ix["name"] for ix in inspector.get_indexes("transactions")}
    assert {"ix_transactions_status", "ix_transactions_location_id"} <= transaction_indexes
