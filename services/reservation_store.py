"""
Reservation and amenity stores.

The backend of record owns reservations and is the only authority on whether
a slot is actually free. InMemoryReservationStore is a reference backend: it
serializes writes under a lock and rejects any create or update whose
interval overlaps another pending/approved reservation of the same amenity.
"""
import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol

from domain.enums import ReservationStatus
from domain.models import Amenity, Reservation


logger = logging.getLogger(__name__)


class ReservationConflictError(Exception):
    """Raised when a reservation conflicts with an existing one."""
    pass


class ReservationNotFoundError(Exception):
    """Raised when a reservation is not found."""
    pass


class AmenityNotFoundError(Exception):
    """Raised when an amenity is not found."""
    pass


class AmenityProvider(Protocol):
    def get_amenity(self, amenity_id: str) -> Amenity: ...

    def add(self, amenity: Amenity) -> None: ...


class ReservationStore(Protocol):
    def get(self, reservation_id: str) -> Reservation: ...

    def list_for_amenity(
        self,
        amenity_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[ReservationStatus]] = None,
    ) -> List[Reservation]: ...

    def list_for_user(self, user_id: str, amenity_id: Optional[str] = None) -> List[Reservation]: ...

    def create(self, reservation: Reservation) -> Reservation: ...

    def save(self, reservation: Reservation) -> Reservation: ...


class InMemoryAmenityProvider:
    """Amenity provider backed by a dictionary."""

    def __init__(self, amenities: Iterable[Amenity] = ()):
        self.amenities: Dict[str, Amenity] = {amenity.id: amenity for amenity in amenities}

    def add(self, amenity: Amenity) -> None:
        self.amenities[amenity.id] = amenity

    def get_amenity(self, amenity_id: str) -> Amenity:
        try:
            return self.amenities[amenity_id]
        except KeyError:
            raise AmenityNotFoundError(f"Amenity {amenity_id} not found") from None


class InMemoryReservationStore:
    """Reservation store that arbitrates conflicts atomically."""

    def __init__(self, reservations: Iterable[Reservation] = ()):
        self._lock = threading.Lock()
        self._reservations: Dict[str, Reservation] = {r.id: r for r in reservations}

    def get(self, reservation_id: str) -> Reservation:
        try:
            return self._reservations[reservation_id]
        except KeyError:
            raise ReservationNotFoundError(f"Reservation {reservation_id} not found") from None

    def list_for_amenity(
        self,
        amenity_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[ReservationStatus]] = None,
    ) -> List[Reservation]:
        """
        Reservations of an amenity, optionally limited to a window and statuses.

        Args:
            amenity_id: Amenity to list
            start: Only reservations ending after this instant
            end: Only reservations starting before this instant
            statuses: Only these statuses

        Returns:
            Reservations ordered by start time
        """
        wanted = set(statuses) if statuses is not None else None
        found = [
            r for r in self._reservations.values()
            if r.amenity_id == amenity_id
            and (wanted is None or r.status in wanted)
            and (start is None or r.end_time > start)
            and (end is None or r.start_time < end)
        ]
        return sorted(found, key=lambda r: r.start_time)

    def list_for_user(self, user_id: str, amenity_id: Optional[str] = None) -> List[Reservation]:
        found = [
            r for r in self._reservations.values()
            if r.user_id == user_id and (amenity_id is None or r.amenity_id == amenity_id)
        ]
        return sorted(found, key=lambda r: r.start_time)

    def _check_conflicts(self, reservation: Reservation) -> None:
        if not reservation.status.is_active:
            return
        for other in self._reservations.values():
            if (
                other.id != reservation.id
                and other.amenity_id == reservation.amenity_id
                and other.status.is_active
                and other.overlaps(reservation.start_time, reservation.end_time)
            ):
                raise ReservationConflictError(
                    f"Amenity {reservation.amenity_id} is already booked "
                    f"from {other.start_time.isoformat()} to {other.end_time.isoformat()}"
                )

    def create(self, reservation: Reservation) -> Reservation:
        """
        Store a new reservation.

        Raises:
            ReservationConflictError: If the id exists or the interval is taken
        """
        with self._lock:
            if reservation.id in self._reservations:
                raise ReservationConflictError(f"Reservation {reservation.id} already exists")
            self._check_conflicts(reservation)
            self._reservations[reservation.id] = reservation
        logger.info(f"Stored reservation {reservation.id} ({reservation.status.value})")
        return reservation

    def save(self, reservation: Reservation) -> Reservation:
        """
        Replace an existing reservation.

        Raises:
            ReservationNotFoundError: If the reservation does not exist
            ReservationConflictError: If the new interval is taken
        """
        with self._lock:
            if reservation.id not in self._reservations:
                raise ReservationNotFoundError(f"Reservation {reservation.id} not found")
            self._check_conflicts(reservation)
            self._reservations[reservation.id] = reservation
        logger.info(f"Updated reservation {reservation.id} ({reservation.status.value})")
        return reservation
