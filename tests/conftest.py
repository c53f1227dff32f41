import asyncio
import os
from datetime import date, datetime

# Settings are read at import time; keep tests off the login rate limit
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from sqlalchemy.orm import sessionmaker

from staydesk.db import init_db, make_engine
from staydesk.models import BookingStatus
from staydesk.schemas import Booking, BookingRequest, Room
from staydesk.services.lifecycle import BookingLifecycle
from staydesk.services.mail import RecordingNotifier
from staydesk.services.store import MemoryBookingStore, SqlBookingStore


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


def make_booking(room_ids, check_in, check_out, status=BookingStatus.ACCEPTED, **extra) -> Booking:
    data = dict(
        room_ids=list(room_ids),
        guest_name="Ada Guest",
        guest_phone="+237 600 000 000",
        guest_email="ada@example.com",
        check_in=check_in,
        check_out=check_out,
        status=status,
        created_at=datetime(2024, 1, 1, 12, 0),
    )
    data.update(extra)
    return Booking(**data)


def make_request(**overrides) -> BookingRequest:
    data = dict(
        room_ids=["r1"],
        guest_name="Ada Guest",
        guest_phone="+237 600 000 000",
        guest_email="ada@example.com",
        check_in=date(2024, 6, 1),
        check_out=date(2024, 6, 3),
    )
    data.update(overrides)
    return BookingRequest(**data)


@pytest.fixture
def rooms():
    return [
        Room(id="r1", name="Garden Room", price=20000, description="Ground floor"),
        Room(id="r2", name="Sea View Suite", price=15000, images=["https://img.example/r2.jpg"]),
    ]


@pytest.fixture
def store(rooms):
    return MemoryBookingStore(rooms=rooms)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def lifecycle(store, notifier):
    return BookingLifecycle(
        store,
        notifier,
        strict_pricing=True,
        hotel_name="Test Hotel",
        currency="USD",
        clock=lambda: datetime(2024, 5, 20, 9, 30),
    )


@pytest.fixture
def sql_store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'staydesk_test.db'}")
    init_db(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    yield SqlBookingStore(factory)
    engine.dispose()
