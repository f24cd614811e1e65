"""
Slot availability for an amenity on a local calendar day.

Amenities are single-occupancy: a candidate interval that intersects any
pending or approved reservation is not offered, whatever the amenity's
declared capacity.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from core.config import Settings, get_settings
from core.utils_datetime import TimeZoneNormalizer, get_normalizer, minutes_between
from domain.enums import DayOfWeek
from domain.models import Actor, Amenity, BookingCandidate, Reservation, Slot
from services.approval_policy import decide_policy


logger = logging.getLogger(__name__)


def _candidate_starts(
    amenity: Amenity,
    target_date: date,
    duration: timedelta,
    step: timedelta,
    normalizer: TimeZoneNormalizer
) -> List[datetime]:
    """UTC start instants on the step grid whose interval ends by closing time."""
    hours = amenity.operating_hours
    opening = normalizer.combine(target_date, hours.start)
    closing = normalizer.combine(target_date, hours.end)

    starts = []
    start = opening
    while start + duration <= closing:
        starts.append(start)
        start += step
    return starts


def _is_current_interval(
    editing: Optional[Reservation],
    start: datetime,
    end: datetime
) -> bool:
    return editing is not None and editing.start_time == start and editing.end_time == end


def compute_availability(
    amenity: Amenity,
    target_date: date,
    duration_minutes: int,
    existing_reservations: Iterable[Reservation],
    editing: Optional[Reservation] = None,
    actor: Optional[Actor] = None,
    normalizer: Optional[TimeZoneNormalizer] = None,
    settings: Optional[Settings] = None,
    exclude_past: bool = False
) -> List[Slot]:
    """
    Enumerate the slots offered for an amenity on a local day.

    Args:
        amenity: Amenity configuration
        target_date: Local calendar date
        duration_minutes: Requested slot length
        existing_reservations: The amenity's reservations; only pending/approved ones block
        editing: Reservation being edited; its own interval is always offered
        actor: Acting user, for the auto-approval annotation (defaults to the edited reservation's owner)
        normalizer: Local time conversion and clock (defaults to configured offset, system clock)
        settings: Settings (defaults to the singleton)
        exclude_past: Drop slots whose start is not in the future

    Returns:
        Slots ordered by start time
    """
    normalizer = normalizer or get_normalizer()
    settings = settings or get_settings()

    if duration_minutes <= 0:
        return []

    if not amenity.operating_hours.is_open_on(DayOfWeek.from_date(target_date)):
        logger.debug(f"Amenity {amenity.id} closed on {target_date.isoformat()}")
        return []

    blocking = [
        reservation
        for reservation in existing_reservations
        if reservation.amenity_id == amenity.id and reservation.status.is_active
    ]

    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=settings.slot_step_minutes)

    intervals = []
    for start in _candidate_starts(amenity, target_date, duration, step, normalizer):
        end = start + duration
        if _is_current_interval(editing, start, end):
            intervals.append((start, end, True))
            continue
        if any(reservation.overlaps(start, end) for reservation in blocking):
            continue
        intervals.append((start, end, False))

    # The edited interval may sit off the step grid
    if (
        editing is not None
        and not any(is_current for _, _, is_current in intervals)
        and normalizer.local_date(editing.start_time) == target_date
        and editing.duration_minutes == duration_minutes
    ):
        intervals.append((editing.start_time, editing.end_time, True))

    if exclude_past:
        intervals = [interval for interval in intervals if not normalizer.is_past(interval[0])]

    intervals.sort(key=lambda interval: interval[0])

    if actor is not None:
        user_id = actor.user_id
    elif editing is not None:
        user_id = editing.user_id
    else:
        user_id = None
    user_reservations = [r for r in blocking if user_id is not None and r.user_id == user_id]

    slots = []
    for start, end, is_current in intervals:
        policy = decide_policy(
            BookingCandidate(
                amenity_id=amenity.id,
                amenity_type=amenity.type,
                user_id=user_id or "",
                start_time=start,
                end_time=end,
                reservation_id=editing.id if editing is not None else None,
            ),
            user_reservations,
            amenity=amenity,
            normalizer=normalizer,
            settings=settings,
        )
        slots.append(Slot(
            start_time=start,
            end_time=end,
            duration=minutes_between(start, end),
            auto_approval=policy.auto_approval,
            approval_reason=policy.reason,
            is_current=is_current,
        ))

    logger.debug(
        f"Amenity {amenity.id} on {target_date.isoformat()}: "
        f"{len(slots)} slots of {duration_minutes} minutes"
    )
    return slots
