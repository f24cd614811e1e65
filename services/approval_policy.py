"""
Auto-approval decisions.

A candidate is auto-approved unless the acting resident already holds a
pending or approved reservation for the same amenity on the same local day,
so a second same-day booking of one amenity always reaches an approver.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.amenity_policy import get_type_policy
from core.config import Settings, get_settings
from core.utils_datetime import TimeZoneNormalizer, get_normalizer
from domain.enums import PolicyReason
from domain.models import Amenity, BookingCandidate, Reservation


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolicyResult:
    """Auto-approval decision with the reason shown to approvers."""
    auto_approval: bool
    reason: PolicyReason
    message: str
    conflicting_reservation_id: Optional[str] = None


def same_day_reservations(
    candidate: BookingCandidate,
    user_reservations: Iterable[Reservation],
    normalizer: TimeZoneNormalizer
) -> List[Reservation]:
    """
    Find the user's other active reservations for the candidate's amenity and local day.

    The reservation being edited (``candidate.reservation_id``) is not counted.
    """
    day = normalizer.local_date(candidate.start_time)
    return [
        reservation
        for reservation in user_reservations
        if reservation.amenity_id == candidate.amenity_id
        and reservation.user_id == candidate.user_id
        and reservation.status.is_active
        and reservation.id != candidate.reservation_id
        and normalizer.local_date(reservation.start_time) == day
    ]


def decide_policy(
    candidate: BookingCandidate,
    user_reservations: Iterable[Reservation],
    amenity: Optional[Amenity] = None,
    normalizer: Optional[TimeZoneNormalizer] = None,
    settings: Optional[Settings] = None
) -> PolicyResult:
    """
    Decide whether a candidate is auto-approved or waits for review.

    Args:
        candidate: Proposed reservation
        user_reservations: The acting user's existing reservations for the amenity
        amenity: Amenity configuration; enables the per-category and per-amenity checks
        normalizer: Local time conversion (defaults to configured offset)
        settings: Settings (defaults to the singleton)

    Returns:
        PolicyResult

    Raises:
        ValueError: If ``amenity`` is given and the candidate is for another amenity
    """
    normalizer = normalizer or get_normalizer()
    settings = settings or get_settings()

    if amenity is not None and candidate.amenity_id != amenity.id:
        raise ValueError(f"Candidate for amenity {candidate.amenity_id} checked against amenity {amenity.id}")

    if amenity is not None and amenity.requires_approval:
        return PolicyResult(
            auto_approval=False,
            reason=PolicyReason.AMENITY_REQUIRES_APPROVAL,
            message=f"{amenity.name} reservations are always reviewed by an administrator",
        )

    check_duplicates = True
    amenity_type = amenity.type if amenity is not None else candidate.amenity_type
    if amenity_type is not None:
        check_duplicates = get_type_policy(amenity_type).requires_approval_on_duplicate

    same_day = same_day_reservations(candidate, user_reservations, normalizer)

    if check_duplicates and same_day:
        existing = same_day[0]
        logger.info(
            f"User {candidate.user_id} already holds reservation {existing.id} "
            f"for amenity {candidate.amenity_id} that day; routing to review"
        )
        return PolicyResult(
            auto_approval=False,
            reason=PolicyReason.SAME_DAY_DUPLICATE,
            message="You already have a reservation for this amenity on this day; "
                    "this one needs administrator approval",
            conflicting_reservation_id=existing.id,
        )

    if settings.enforce_auto_approval_rules and amenity is not None:
        rules = amenity.auto_approval_rules
        if candidate.duration_minutes > rules.max_duration_minutes:
            return PolicyResult(
                auto_approval=False,
                reason=PolicyReason.EXCEEDS_MAX_DURATION,
                message=f"Reservations longer than {rules.max_duration_minutes} minutes need approval",
            )
        if len(same_day) >= rules.max_reservations_per_day:
            return PolicyResult(
                auto_approval=False,
                reason=PolicyReason.DAILY_LIMIT_REACHED,
                message=f"Only {rules.max_reservations_per_day} reservations per day are auto-approved",
            )

    return PolicyResult(
        auto_approval=True,
        reason=PolicyReason.AUTO_APPROVED,
        message="Reservation will be confirmed immediately",
    )
