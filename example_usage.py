"""
Example usage of the amenity booking core.

Seeds an in-memory store, books the jacuzzi twice on the same day, lists what
is still free and runs the second booking through administrator review.
"""

from datetime import time, timedelta

from core.config import get_settings
from core.logging import setup_logging
from core.utils_datetime import get_normalizer
from domain import (
    Actor,
    ActorRole,
    Amenity,
    AmenityType,
    BookingCandidate,
    LifecycleAction,
    OperatingHours,
)
from services.booking_service import BookingService
from services.reservation_store import InMemoryAmenityProvider, InMemoryReservationStore


def build_service() -> BookingService:
    amenities = InMemoryAmenityProvider([
        Amenity(id="jacuzzi", name="Jacuzzi", type=AmenityType.JACUZZI, capacity=4),
        Amenity(
            id="lounge",
            name="Community Lounge",
            type=AmenityType.LOUNGE,
            capacity=20,
            requires_approval=True,
            operating_hours=OperatingHours(start=time(8, 0), end=time(23, 0)),
        ),
    ])
    return BookingService(amenities, InMemoryReservationStore())


def print_slots(service: BookingService, actor: Actor, day) -> None:
    slots = service.available_slots("jacuzzi", day, 60, actor)
    normalizer = service.normalizer
    print(f"\nFree 60 minute jacuzzi slots on {day.isoformat()} for {actor.user_id}:")
    for slot in slots:
        local = normalizer.to_local(slot.start_time)
        flag = "auto" if slot.auto_approval else "review"
        print(f"  {local.strftime('%H:%M')}  [{flag}]")


def main():
    setup_logging()
    settings = get_settings()
    normalizer = get_normalizer()
    service = build_service()

    resident = Actor(user_id="apartment204")
    admin = Actor(user_id="admin", role=ActorRole.ADMIN)

    tomorrow = normalizer.now_local().date() + timedelta(days=1)
    evening = normalizer.combine(tomorrow, time(18, 0))

    print("=" * 60)
    print(f"{settings.app_name} (UTC offset {settings.local_utc_offset_minutes} minutes)")
    print("=" * 60)

    first = service.submit(
        BookingCandidate(
            amenity_id="jacuzzi",
            user_id=resident.user_id,
            start_time=evening,
            end_time=evening + timedelta(hours=1),
        ),
        resident,
    )
    print(f"\nFirst booking: {first.reservation.status.value} ({first.message})")

    morning = normalizer.combine(tomorrow, time(9, 0))
    second = service.submit(
        BookingCandidate(
            amenity_id="jacuzzi",
            user_id=resident.user_id,
            start_time=morning,
            end_time=morning + timedelta(hours=1),
        ),
        resident,
    )
    print(f"Second booking: {second.reservation.status.value} ({second.message})")

    print_slots(service, resident, tomorrow)

    approved = service.transition(second.reservation.id, LifecycleAction.APPROVE, admin)
    print(f"\nAfter review: {approved.status.value}")

    soon = normalizer.now() + timedelta(hours=12)
    too_soon = service.submit(
        BookingCandidate(
            amenity_id="lounge",
            user_id=resident.user_id,
            start_time=soon,
            end_time=soon + timedelta(hours=3),
            visitor_count=12,
        ),
        resident,
    )
    print(f"\nLounge in 12 hours: {too_soon.message}")

    party = normalizer.combine(tomorrow + timedelta(days=2), time(17, 0))
    lounge = service.submit(
        BookingCandidate(
            amenity_id="lounge",
            user_id=resident.user_id,
            start_time=party,
            end_time=party + timedelta(hours=3),
            visitor_count=12,
            grill_usage=True,
        ),
        resident,
    )
    print(f"Lounge in three days: {lounge.reservation.status.value} ({lounge.message})")


if __name__ == "__main__":
    main()
