# backend/tests/conftest.py
"""
Pytest configuration for the Artspace booking core.

Every test gets its own SQLite file so threaded tests can open several
connections against the same ledger. Redis is disabled: booking locks are
process-local in tests.
"""

import os

# Set testing mode BEFORE any artspace imports
os.environ["is_testing"] = "true"
os.environ["REDIS_URL"] = ""
os.environ["PAYMENT_WEBHOOK_SECRET"] = "whsec_artspace_test"

from datetime import time
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, List, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from artspace.api.dependencies import get_payment_gateway_dep
from artspace.core.context import Requester, TenantContext
from artspace.database import Base, get_db, init_db
from artspace.main import app
from artspace.models.resource import (
    Resource,
    ResourceBlackout,
    ResourceOperatingWindow,
    ResourcePricingRule,
)
from artspace.services.payment_gateway import NullPaymentGateway
from tests._utils.scheduling import ORG_ID, OTHER_ORG_ID


@pytest.fixture
def engine(tmp_path: Any) -> Iterator[Engine]:
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(db_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    init_db(db_engine)
    yield db_engine
    Base.metadata.drop_all(bind=db_engine)
    db_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def tenant() -> TenantContext:
    return TenantContext(organization_id=ORG_ID, timezone="UTC")


@pytest.fixture
def other_tenant() -> TenantContext:
    return TenantContext(organization_id=OTHER_ORG_ID, timezone="UTC")


@pytest.fixture
def public_requester() -> Requester:
    return Requester(id="visitor-1", role="public")


@pytest.fixture
def member() -> Requester:
    return Requester(id="member-1", role="member")


@pytest.fixture
def resident() -> Requester:
    return Requester(id="artist-1", role="resident_artist")


@pytest.fixture
def admin() -> Requester:
    return Requester(id="staff-1", role="staff")


@pytest.fixture
def payment_gateway() -> NullPaymentGateway:
    return NullPaymentGateway()


@pytest.fixture
def make_resource(db: Session) -> Callable[..., Resource]:
    """
    Factory for catalog rows.

    Defaults: a single-capacity studio open 09:00-17:00 every day in UTC,
    60 minute slots, public pays the default rate of 50.00, members 20.00,
    resident artists are free.
    """

    def _make(
        *,
        organization_id: str = ORG_ID,
        title: str = "Print Studio",
        capacity: int = 1,
        default_rate: Decimal = Decimal("50.00"),
        pricing_rules: Optional[Dict[str, Decimal]] = None,
        free_for_roles: Optional[List[str]] = None,
        timezone_name: str = "UTC",
        slot_minutes: int = 60,
        buffer_before_minutes: int = 0,
        buffer_after_minutes: int = 0,
        max_slots_per_day: Optional[int] = None,
        windows: Optional[List[tuple]] = None,
        blackouts: Optional[List[tuple]] = None,
        is_bookable: bool = True,
    ) -> Resource:
        resource = Resource(
            organization_id=organization_id,
            title=title,
            type="space",
            capacity=capacity,
            default_rate=default_rate,
            currency="USD",
            free_for_roles=["resident_artist"] if free_for_roles is None else free_for_roles,
            timezone=timezone_name,
            slot_minutes=slot_minutes,
            buffer_before_minutes=buffer_before_minutes,
            buffer_after_minutes=buffer_after_minutes,
            max_slots_per_day=max_slots_per_day,
            is_bookable=is_bookable,
        )
        rules = {"member": Decimal("20.00")} if pricing_rules is None else pricing_rules
        resource.pricing_rules = [
            ResourcePricingRule(role=role, unit_price=price) for role, price in rules.items()
        ]
        if windows is None:
            windows = [(weekday, time(9, 0), time(17, 0)) for weekday in range(7)]
        resource.operating_windows = [
            ResourceOperatingWindow(weekday=weekday, open_time=opens, close_time=closes)
            for weekday, opens, closes in windows
        ]
        resource.blackouts = [
            ResourceBlackout(start_date=first, end_date=last, reason="closed")
            for first, last in (blackouts or [])
        ]
        db.add(resource)
        db.commit()
        return resource

    return _make


@pytest.fixture
def client(db: Session, payment_gateway: NullPaymentGateway) -> Iterator[TestClient]:
    """API client sharing the test session; lifespan is not run."""

    def _override_get_db() -> Iterator[Session]:
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_payment_gateway_dep] = lambda: payment_gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

