"""
Shared fixtures: in-memory database, fresh rules/metrics, and entity factories.
"""
import os

# Must be set before anything imports src.lib.settings
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.lib.config_flags import reset_all_configs
from src.lib.db import SessionLocal, init_db, drop_db
from src.lib.metrics import reset_metrics, get_metrics_collector
from src.models import (
    BankAccount,
    Booking,
    BookingStatus,
    BusinessProfile,
    BusinessReview,
    BusinessService,
)


@pytest.fixture(autouse=True)
def _clean_state():
    """Fresh schema, default rules and zeroed counters for every test."""
    init_db()
    reset_all_configs()
    reset_metrics()
    yield
    drop_db()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def metrics():
    return get_metrics_collector()


@pytest.fixture
def client():
    """Test client for FastAPI app."""
    from src.api.app import app
    return TestClient(app)


@pytest.fixture
def make_business(db):
    def _make(owner_id=None, payout_ready=True, is_active=True, **fields):
        business = BusinessProfile(
            user_id=owner_id or uuid4(),
            business_name=fields.pop("business_name", "Adaeze Cleaning Services"),
            category=fields.pop("category", "cleaning"),
            is_active=is_active,
            **fields,
        )
        db.add(business)
        db.flush()
        if payout_ready:
            db.add(BankAccount(
                user_id=business.user_id,
                account_number="0123456789",
                bank_code="058",
                bank_name="GTBank",
                account_name="Adaeze Okafor",
                is_verified=True,
                is_default=True,
            ))
        db.commit()
        db.refresh(business)
        return business
    return _make


@pytest.fixture
def make_service(db):
    def _make(business, service_name="Deep cleaning", price_min=Decimal("15000.00"), **fields):
        service = BusinessService(
            business_id=business.id,
            service_name=service_name,
            price_min=price_min,
            price_max=fields.pop("price_max", None),
            **fields,
        )
        db.add(service)
        db.commit()
        db.refresh(service)
        return service
    return _make


@pytest.fixture
def make_booking(db):
    def _make(business, customer_id=None, status=BookingStatus.PENDING, **fields):
        booking = Booking(
            user_id=customer_id or uuid4(),
            business_id=business.id,
            status=status,
            scheduled_date=fields.pop("scheduled_date", date(2026, 11, 2)),
            price=fields.pop("price", Decimal("10000.00")),
            **fields,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking
    return _make


@pytest.fixture
def make_review(db):
    """Insert a review row directly, bypassing the rating refresh."""
    def _make(business, customer_id=None, rating=5, **fields):
        review = BusinessReview(
            business_id=business.id,
            user_id=customer_id or uuid4(),
            rating=rating,
            **fields,
        )
        db.add(review)
        db.commit()
        db.refresh(review)
        return review
    return _make
