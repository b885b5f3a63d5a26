"""
Pytest fixtures for jewelpos backend tests.

Provides an in-memory database per test, seeded roles and users, catalog
reference data and an authenticated test client.

Setup data is always committed before a service is called: every write path
opens its unit of work with BEGIN IMMEDIATE, which SQLite refuses inside an
already open transaction.
"""

from decimal import Decimal

import bcrypt
import pytest
from sqlalchemy.pool import StaticPool

from jewelpos import create_app
from jewelpos.extensions import db
from jewelpos.models import Member, MemberType, Role, User
from jewelpos.models.enums import LocationType
from jewelpos.services import catalog_service, permission_service
from jewelpos.services.auth_service import create_default_roles
from jewelpos.time_utils import utcnow

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return bcrypt.hashpw(PASSWORD.encode('utf-8'), bcrypt.gensalt(rounds=4)).decode('utf-8')


@pytest.fixture(scope='function')
def app():
    """Create application with a fresh in-memory database."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SQLALCHEMY_ENGINE_OPTIONS': {
            'poolclass': StaticPool,
            'connect_args': {'check_same_thread': False},
        },
        'DB_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def setup_roles(app):
    """Setup default roles and permissions."""
    create_default_roles()
    permission_service.initialize_permissions()
    permission_service.assign_default_role_permissions()
    db.session.commit()


def _make_user(username: str, role_name: str, password_hash: str) -> User:
    role = db.session.query(Role).filter_by(name=role_name).first()
    user = User(
        username=username,
        email=f"{username}@jewelpos.local",
        password_hash=password_hash,
        role_id=role.id,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def seed(setup_roles, password_hash):
    """admin, manager and cashier users with their default roles."""
    return {
        name: _make_user(name, name, password_hash)
        for name in ("admin", "manager", "cashier")
    }


@pytest.fixture(scope='function')
def admin_user(seed):
    return seed["admin"]


@pytest.fixture(scope='function')
def cashier_user(seed):
    return seed["cashier"]


@pytest.fixture(scope='function')
def admin_headers(client, seed):
    return auth_headers(get_auth_token(client, "admin", PASSWORD))


@pytest.fixture(scope='function')
def manager_headers(client, seed):
    return auth_headers(get_auth_token(client, "manager", PASSWORD))


@pytest.fixture(scope='function')
def cashier_headers(client, seed):
    return auth_headers(get_auth_token(client, "cashier", PASSWORD))


# =============================================================================
# CATALOG
# =============================================================================

@pytest.fixture(scope='function')
def catalog(app):
    """
    Shop TK01 with boxes TK01-B1/TK01-B2, warehouse GD01 with box GD01-B1,
    a 24K category (buy 1,000,000 / sell 1,100,000) and a 2.5 g ring.
    """
    shop = catalog_service.create_location(code="TK01", name="Toko Pusat", type=LocationType.SHOP)
    warehouse = catalog_service.create_location(code="GD01", name="Gudang Utama", type=LocationType.WAREHOUSE)
    box = catalog_service.create_storage_box(location_id=shop.id, code="TK01-B1", capacity=100)
    other_box = catalog_service.create_storage_box(location_id=shop.id, code="TK01-B2", capacity=100)
    warehouse_box = catalog_service.create_storage_box(location_id=warehouse.id, code="GD01-B1", capacity=100)
    category = catalog_service.create_gold_category(
        code="24K",
        name="Emas 24 Karat",
        purity=Decimal("0.9999"),
        buy_price=Decimal("1000000"),
        sell_price=Decimal("1100000"),
    )
    product = catalog_service.create_product(
        barcode="CIN-24-001",
        name="Cincin Polos 24K",
        gold_category_id=category.id,
        weight=Decimal("2.500"),
        type="cincin",
    )
    db.session.commit()
    return {
        "shop": shop,
        "warehouse": warehouse,
        "box": box,
        "other_box": other_box,
        "warehouse_box": warehouse_box,
        "category": category,
        "product": product,
    }


@pytest.fixture(scope='function')
def member(app):
    """Regular member with no history."""
    m = Member(
        member_code="MBR2026010100001",
        name="Siti Rahma",
        phone="081234567890",
        type=MemberType.REGULAR,
        points=0,
        total_purchase=Decimal("0"),
        total_sell=Decimal("0"),
        transaction_count=0,
        join_date=utcnow(),
        is_active=True,
    )
    db.session.add(m)
    db.session.commit()
    return m


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json["data"]["token"]
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
