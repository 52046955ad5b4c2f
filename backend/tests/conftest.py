"""
Pytest fixtures for workshop ledger backend tests.

Provides an app on an in-memory SQLite database, a per-test clean session,
and a test client.
"""

import pytest
from workshop_ledger import create_app
from workshop_ledger.config import DEFAULT_COUNTERPARTY_BUCKETS
from workshop_ledger.extensions import db


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BUSINESS_TIMEZONE': 'UTC',
        'COUNTERPARTY_BUCKETS': DEFAULT_COUNTERPARTY_BUCKETS,
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


def make_sale(amount=100, payment_mode="CASH", date="2026-01-10T10:00:00Z", **extra):
    """Create a sale through the service with sensible defaults."""
    from workshop_ledger.services import sales_service

    payload = {"amount": amount, "payment_mode": payment_mode, "date": date}
    payload.update(extra)
    return sales_service.create_sale(payload)


def make_expense(amount=100, payment_mode="CASH", date="2026-01-10T10:00:00Z", **extra):
    from workshop_ledger.services import expense_service

    payload = {"amount": amount, "payment_mode": payment_mode, "date": date}
    payload.update(extra)
    return expense_service.create_expense(payload)
