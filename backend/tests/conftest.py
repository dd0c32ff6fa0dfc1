"""
Pytest fixtures for Ferreteria Don Lucho backend tests.

Provides test database setup, one user per role, header helpers and a
product factory.
"""

import pytest

from ferreteria import create_app
from ferreteria.extensions import db
from ferreteria.models import Product, Supplier, User
from ferreteria.permissions import Role
from ferreteria.session import USER_HEADER
from ferreteria.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def _make_user(session, role, email=None):
    user = User(
        full_name=f"Usuario {role}",
        email=email or f"{role}@donlucho.test",
        role=role,
        is_active=True,
        created_at=utcnow(),
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def users(db_session):
    """One active user per role, keyed by role name."""
    return {
        role: _make_user(db_session, role)
        for role in (Role.MANAGER, Role.ACCOUNTANT, Role.CASHIER, Role.WAREHOUSE)
    }


def headers_for(user):
    return {USER_HEADER: str(user.id)}


@pytest.fixture
def manager_headers(users):
    return headers_for(users[Role.MANAGER])


@pytest.fixture
def accountant_headers(users):
    return headers_for(users[Role.ACCOUNTANT])


@pytest.fixture
def cashier_headers(users):
    return headers_for(users[Role.CASHIER])


@pytest.fixture
def warehouse_headers(users):
    return headers_for(users[Role.WAREHOUSE])


@pytest.fixture
def supplier(db_session):
    now = utcnow()
    s = Supplier(name="Ferretera Central", email="ventas@central.cl", created_at=now, updated_at=now)
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture
def make_product(db_session):
    """Factory: make_product("Martillo", stock=5, price_cents=1000)."""
    def _make(name, *, stock=0, price_cents=0, min_stock=10, category=None, sku=None, supplier_id=None):
        now = utcnow()
        product = Product(
            name=name,
            sku=sku,
            category=category,
            price_cents=price_cents,
            cost_cents=0,
            stock=stock,
            min_stock=min_stock,
            supplier_id=supplier_id,
            created_at=now,
            updated_at=now,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def reload_stock(db_session):
    """Read a product's stock from the store, bypassing the identity map."""
    def _reload(product_id):
        db_session.expire_all()
        return db_session.get(Product, product_id).stock

    return _reload
