"""
Pytest fixtures for the boutique POS backend.

Provides an in-memory test database (wiped per test), the Flask test client,
and small factories for catalog, staff and sales rows.
"""

from decimal import Decimal

import pytest

from boutique_pos import create_app
from boutique_pos.extensions import db
from boutique_pos.models import Barcode, Category, Product, Transaction, TransactionItem, User
from boutique_pos.services.auth_service import hash_password
from boutique_pos.services.barcode_service import format_code
from boutique_pos.time_utils import utcnow


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test, inside an app context."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()
        db.session.remove()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_product(db_session):
    """Insert a product directly (bypasses barcode allocation)."""
    counter = {"n": 9000}

    def _make(name="Product", price="500", stock=10, cost_price=None,
              min_stock_level=5, category=None, is_active=True, barcode=None):
        counter["n"] += 1
        product = Product(
            barcode=barcode or format_code(counter["n"]),
            name=name,
            price=Decimal(str(price)),
            cost_price=Decimal(str(cost_price)) if cost_price is not None else None,
            stock_quantity=stock,
            min_stock_level=min_stock_level,
            category_id=category.id if category else None,
            is_active=is_active,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def make_category(db_session):
    def _make(name="Dresses"):
        category = Category(name=name)
        db_session.add(category)
        db_session.commit()
        return category

    return _make


@pytest.fixture
def make_barcodes(db_session):
    """Seed `count` available barcodes starting at barcode_id `start`."""
    def _make(count, start=1, status="available"):
        rows = [
            Barcode(barcode_id=n, barcode=format_code(n), status=status)
            for n in range(start, start + count)
        ]
        db_session.add_all(rows)
        db_session.commit()
        return rows

    return _make


@pytest.fixture
def make_user(db_session):
    def _make(username="cashier1", role="cashier", full_name="Cashier One", is_active=True):
        user = User(
            username=username,
            email=f"{username}@boutique.test",
            full_name=full_name,
            role=role,
            is_active=is_active,
            password_hash=hash_password(TEST_PASSWORD),
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_sale(db_session):
    """
    Insert a transaction with explicit timestamps (for reporting tests).

    lines: [(product, quantity, unit_price), ...]
    """
    counter = {"n": 0}

    def _make(lines, created_at=None, payment_method="cash", status="completed",
              created_by=None, discount="0", customer_name=None, customer_phone=None):
        counter["n"] += 1
        created_at = created_at or utcnow()
        subtotal = sum(Decimal(str(price)) * qty for _, qty, price in lines)
        total = subtotal - Decimal(discount)
        tx = Transaction(
            transaction_number=f"TX-{created_at:%Y%m%d}-T{counter['n']:03d}",
            subtotal=subtotal,
            discount_amount=Decimal(discount),
            total_amount=total,
            amount_paid=total,
            payment_method=payment_method,
            status=status,
            created_by=created_by.id if created_by else None,
            customer_name=customer_name,
            customer_phone=customer_phone,
            created_at=created_at,
        )
        for product, qty, price in lines:
            tx.items.append(TransactionItem(
                product_id=product.id,
                product_name=product.name,
                barcode=product.barcode,
                quantity=qty,
                unit_price=Decimal(str(price)),
                total_price=Decimal(str(price)) * qty,
                created_at=created_at,
            ))
        db_session.add(tx)
        db_session.commit()
        return tx

    return _make
