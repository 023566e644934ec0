"""
Pytest fixtures for the bar POS backend tests.

Provides an in-memory database, per-test table wipe, staff/product/table
fixtures and logged-in test clients (one per role, cookie based).
"""

from decimal import Decimal

import pytest

from barpos import create_app
from barpos.extensions import db
from barpos.models import BarTable, Category, CreditClient, Product, User
from barpos.services.auth_service import hash_password

PASSWORD = "Liberty@25%"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all data but keep the schema."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Unauthenticated test client."""
    return app.test_client()


def make_user(session, user_id: str, role: str, *, is_active: bool = True, first_name=None, last_name=None) -> User:
    user = User(
        id=user_id,
        role=role,
        is_active=is_active,
        first_name=first_name,
        last_name=last_name,
        password_hash=hash_password(PASSWORD),
    )
    session.add(user)
    session.commit()
    return user


def login(client, user_id: str, role: str, password: str = PASSWORD):
    return client.post('/api/auth/login', json={
        'username': user_id,
        'password': password,
        'role': role,
    })


@pytest.fixture(scope='function')
def cashier(db_session):
    return make_user(db_session, "jose.barros", "cashier", first_name="Jose", last_name="Barros")


@pytest.fixture(scope='function')
def other_cashier(db_session):
    return make_user(db_session, "milisiana", "cashier")


@pytest.fixture(scope='function')
def server(db_session):
    return make_user(db_session, "rafa", "server", first_name="Rafa")


@pytest.fixture(scope='function')
def manager(db_session):
    return make_user(db_session, "lucelle", "manager", first_name="Lucelle")


def _logged_in(app, user):
    c = app.test_client()
    resp = login(c, user.id, user.role)
    assert resp.status_code == 200, resp.get_json()
    return c


@pytest.fixture(scope='function')
def cashier_client(app, cashier):
    return _logged_in(app, cashier)


@pytest.fixture(scope='function')
def other_cashier_client(app, other_cashier):
    return _logged_in(app, other_cashier)


@pytest.fixture(scope='function')
def server_client(app, server):
    return _logged_in(app, server)


@pytest.fixture(scope='function')
def manager_client(app, manager):
    return _logged_in(app, manager)


@pytest.fixture(scope='function')
def category(db_session):
    cat = Category(name="Beers", description="Bottled beer")
    db_session.add(cat)
    db_session.commit()
    return cat


def make_product(session, name: str, price: str, *, stock: int = 20, min_level: int = 5, category=None, is_active=True):
    product = Product(
        name=name,
        price=Decimal(price),
        stock_quantity=stock,
        min_stock_level=min_level,
        category_id=category.id if category else None,
        is_active=is_active,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def beer(db_session, category):
    return make_product(db_session, "Sagres 33cl", "2.50", stock=48, category=category)


@pytest.fixture(scope='function')
def fries(db_session):
    return make_product(db_session, "Fries", "4.00", stock=10)


def make_table(session, number: int, capacity: int = 4) -> BarTable:
    table = BarTable(number=number, capacity=capacity, status="free")
    session.add(table)
    session.commit()
    return table


@pytest.fixture(scope='function')
def table(db_session):
    return make_table(db_session, 1)


@pytest.fixture(scope='function')
def credit_client(db_session):
    c = CreditClient(name="Carlos Mendes", phone="955000000", total_credit=Decimal("100.00"), credit_limit=Decimal("500.00"))
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def open_shift(cashier_client):
    resp = cashier_client.post('/api/sessions', json={'shift_type': 'evening'})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['session']


def place_order(client, table_id: int, items: list, notes=None):
    return client.post('/api/orders', json={'table_id': table_id, 'items': items, 'notes': notes})
