"""Pytest configuration and fixtures for amenity booking tests."""
import logging
from datetime import datetime, time

import pytest
import pytz

from core.config import Settings
from core.utils_datetime import TimeZoneNormalizer, fixed_clock
from domain import (
    Actor,
    ActorRole,
    Amenity,
    AmenityType,
    OperatingHours,
    Reservation,
    ReservationStatus,
    SpecialRequests,
)
from services.reservation_store import InMemoryAmenityProvider, InMemoryReservationStore


# Wednesday
NOW = datetime(2025, 1, 1, 0, 0, tzinfo=pytz.utc)


@pytest.fixture(scope="function")
def now():
    """Fixed current instant shared by all time-dependent tests."""
    return NOW


@pytest.fixture(scope="function")
def settings():
    """Default settings, isolated from any .env file."""
    return Settings(_env_file=None)


@pytest.fixture(scope="function")
def normalizer(now):
    """UTC-aligned local clock frozen at NOW, so local and UTC times read the same."""
    return TimeZoneNormalizer(offset_minutes=0, clock=fixed_clock(now))


@pytest.fixture(scope="function")
def at():
    """Build a UTC instant in January 2025."""
    def _at(day: int, hour: int, minute: int = 0) -> datetime:
        return datetime(2025, 1, day, hour, minute, tzinfo=pytz.utc)
    return _at


@pytest.fixture(scope="function")
def jacuzzi():
    """Jacuzzi open 06:00-22:00 every day."""
    return Amenity(id="jacuzzi-1", name="Jacuzzi", type=AmenityType.JACUZZI, capacity=4)


@pytest.fixture(scope="function")
def lounge():
    """Community lounge with grill, open 08:00-23:00."""
    return Amenity(
        id="lounge-1",
        name="Community Lounge",
        type=AmenityType.LOUNGE,
        capacity=20,
        operating_hours=OperatingHours(start=time(8, 0), end=time(23, 0)),
    )


@pytest.fixture(scope="function")
def maintenance_area():
    """Maintenance booking target for administrators."""
    return Amenity(id="maint-1", name="Pool Maintenance", type=AmenityType.MAINTENANCE)


@pytest.fixture(scope="function")
def resident():
    return Actor(user_id="apartment204", role=ActorRole.RESIDENT)


@pytest.fixture(scope="function")
def neighbour():
    return Actor(user_id="apartment305", role=ActorRole.RESIDENT)


@pytest.fixture(scope="function")
def admin():
    return Actor(user_id="admin", role=ActorRole.ADMIN)


@pytest.fixture(scope="function")
def make_reservation(resident, jacuzzi):
    """Factory fixture to build reservation records."""
    counter = {"n": 0}

    def _make(start, end, status=ReservationStatus.APPROVED, user_id=None, amenity_id=None, **kwargs):
        counter["n"] += 1
        if status == ReservationStatus.DENIED:
            kwargs.setdefault("denial_reason", "Building event")
        return Reservation(
            id=kwargs.pop("id", f"res-{counter['n']}"),
            amenity_id=amenity_id or jacuzzi.id,
            user_id=user_id or resident.user_id,
            start_time=start,
            end_time=end,
            status=status,
            special_requests=kwargs.pop("special_requests", SpecialRequests()),
            **kwargs,
        )
    return _make


@pytest.fixture(scope="function")
def amenity_provider(jacuzzi, lounge, maintenance_area):
    return InMemoryAmenityProvider([jacuzzi, lounge, maintenance_area])


@pytest.fixture(scope="function")
def reservation_store():
    return InMemoryReservationStore()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo any root logger changes made by setup_logging()."""
    from core.logging import CHATTY_LOGGERS

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    service_levels = {name: logging.getLogger(name).level for name in CHATTY_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, service_level in service_levels.items():
        logging.getLogger(name).setLevel(service_level)
