import secrets
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coachbook.models.tables import Base, Bookings
from coachbook.services.slots import AvailabilityEngine
from coachbook.services.slots.stores import BookingStore, OverrideStore, SiteSettingsStore

from .fakes import FakeCalendar

# Monday 2 March 2026, 08:00 SAST
NOW = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)
WEDNESDAY = date(2026, 3, 4)
THURSDAY = date(2026, 3, 5)
FRIDAY = date(2026, 3, 6)
SATURDAY = date(2026, 3, 7)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(db_engine):
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def engine(db, calendar):
    """Availability engine over the real stores, clock frozen at NOW."""
    return AvailabilityEngine(
        settings_store=SiteSettingsStore(db),
        override_store=OverrideStore(db),
        booking_store=BookingStore(db),
        calendar=calendar,
        clock=lambda: NOW,
    )


@pytest.fixture
def make_booking(db):
    def _make(
        day=WEDNESDAY,
        start_time="10:15",
        end_time="11:15",
        session_type="individual",
        status="confirmed",
        **fields,
    ) -> Bookings:
        fields.setdefault("client_name", "Thandi Nkosi")
        fields.setdefault("client_email", "thandi@example.com")
        fields.setdefault("duration_minutes", 30 if session_type == "free_consultation" else 60)
        booking = Bookings(
            date=day,
            start_time=start_time,
            end_time=end_time,
            session_type=session_type,
            status=status,
            confirmation_token=secrets.token_urlsafe(16),
            **fields,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make
