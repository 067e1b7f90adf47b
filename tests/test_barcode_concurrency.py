# Overview: Concurrency tests for barcode allocation and checkout on a file-backed SQLite DB.

"""
Concurrent product creations must each get a distinct barcode, and
concurrent checkouts must never oversell.

These run against a real SQLite file so every thread has its own connection.
"""

import threading
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from boutique_pos import create_app
from boutique_pos.extensions import db
from boutique_pos.models import Barcode, Product
from boutique_pos.services import barcode_service, products_service, sales_service
from boutique_pos.services.concurrency import is_unique_violation
from boutique_pos.services.sales_service import InsufficientStockError


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'concurrency.db'}",
        "BCRYPT_ROUNDS": 4,
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _run_workers(count, target):
    threads = [threading.Thread(target=target, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


class TestConcurrentAllocation:

    def test_each_product_gets_a_distinct_barcode(self, file_app):
        with file_app.app_context():
            barcode_service.generate_barcodes(10)

        created = []
        errors = []
        lock = threading.Lock()

        def worker(i):
            with file_app.app_context():
                try:
                    product = products_service.create_product(
                        patch={"name": f"Item {i}", "price": Decimal("10")}
                    )
                    with lock:
                        created.append(product.barcode)
                except Exception as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        _run_workers(10, worker)

        assert not errors
        assert len(created) == len(set(created)) == 10
        with file_app.app_context():
            assert db.session.query(Barcode).filter_by(status="available").count() == 0
            assert db.session.query(Product).count() == 10

    def test_pool_exhaustion_under_contention(self, file_app):
        with file_app.app_context():
            barcode_service.generate_barcodes(3)

        created = []
        errors = []
        lock = threading.Lock()

        def worker(i):
            with file_app.app_context():
                try:
                    product = products_service.create_product(
                        patch={"name": f"Item {i}", "price": Decimal("10")}
                    )
                    with lock:
                        created.append(product.barcode)
                except barcode_service.NoBarcodesAvailableError as exc:
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        _run_workers(6, worker)

        assert sorted(created) == ["0000000001", "0000000002", "0000000003"]
        assert len(errors) == 3


class TestConcurrentCheckout:

    def test_no_oversell(self, file_app):
        with file_app.app_context():
            product = Product(barcode="0000000001", name="Last Dress", price=Decimal("100"), stock_quantity=3)
            db.session.add(product)
            db.session.commit()
            product_id = product.id

        sold = []
        rejected = []
        lock = threading.Lock()

        def worker(i):
            with file_app.app_context():
                try:
                    req = sales_service.parse_checkout({
                        "items": [{"product_id": product_id, "quantity": 1, "unit_price": 100}],
                    })
                    tx = sales_service.checkout(req)
                    with lock:
                        sold.append(tx.transaction_number)
                except InsufficientStockError as exc:
                    with lock:
                        rejected.append(exc)
                finally:
                    db.session.remove()

        _run_workers(6, worker)

        assert len(sold) == 3
        assert len(rejected) == 3
        with file_app.app_context():
            assert db.session.get(Product, product_id).stock_quantity == 0


class TestUniqueViolation:

    @staticmethod
    def _error(message):
        return IntegrityError("INSERT ...", {}, Exception(message))

    @pytest.mark.parametrize("message, column", [
        ("UNIQUE constraint failed: transactions.transaction_number", "transaction_number"),
        ("UNIQUE constraint failed: products.barcode", "barcode"),
        ('duplicate key value violates unique constraint "products_barcode_key"', "barcode"),
    ])
    def test_matches_the_named_unique_constraint(self, message, column):
        assert is_unique_violation(self._error(message), column)

    @pytest.mark.parametrize("message, column", [
        ("NOT NULL constraint failed: products.barcode", "barcode"),
        ("UNIQUE constraint failed: products.barcode", "transaction_number"),
        ("FOREIGN KEY constraint failed", "barcode"),
    ])
    def test_other_failures_do_not_match(self, message, column):
        assert not is_unique_violation(self._error(message), column)
