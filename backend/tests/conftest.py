"""
Pytest fixtures for billbook backend tests.

Provides an in-memory database, a test client, two accounts (for
isolation checks), bearer headers and a couple of catalogue products.
"""

import pytest
from decimal import Decimal

from billbook import create_app
from billbook.extensions import db
from billbook.models import Client, Product
from billbook.services.auth_service import create_account
from billbook.services.session_service import create_session


TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
        'ERROR_DETAIL_LOGGING': False,
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


@pytest.fixture(scope='function')
def account(db_session):
    """Create the primary account."""
    return create_account("owner@acme.test", TEST_PASSWORD, full_name="Asha Owner", company_name="Acme Traders")


@pytest.fixture(scope='function')
def other_account(db_session):
    """Create a second, unrelated account."""
    return create_account("owner@beta.test", TEST_PASSWORD, company_name="Beta Stores")


@pytest.fixture(scope='function')
def auth_headers(account):
    """Bearer headers for the primary account."""
    _, token = create_session(account)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def other_headers(other_account):
    _, token = create_session(other_account)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(account_id, name, quantity, purchase_price=..., unit_price=...)."""
    def _make(account_id, name, quantity, purchase_price="60.00", unit_price="100.00", **kwargs):
        product = Product(
            account_id=account_id,
            name=name,
            quantity=quantity,
            purchase_price=Decimal(purchase_price),
            unit_price=Decimal(unit_price),
            **kwargs,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_a(account, make_product):
    """Product A with 5 units in stock."""
    return make_product(account.id, "Product A", 5, sku="PA-001", category="Widgets")


@pytest.fixture(scope='function')
def product_b(account, make_product):
    """Product B with 3 units in stock."""
    return make_product(account.id, "Product B", 3, purchase_price="20.00", unit_price="35.00", sku="PB-001")


@pytest.fixture(scope='function')
def customer(account):
    c = Client(account_id=account.id, name="Ravi Kumar", email="ravi@example.test", phone="98450 00000")
    db.session.add(c)
    db.session.commit()
    return c
