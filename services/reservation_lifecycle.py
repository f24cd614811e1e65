"""
Reservation status lifecycle.

    pending  --approve (admin)-->          approved
    pending  --deny (admin, reason)-->     denied
    pending  --cancel (owner/admin)-->     cancelled
    approved --cancel (owner/admin)-->     cancelled

Denied, cancelled and completed are terminal. Completion is never stored by
this module: an approved reservation whose end has passed reads as completed
through effective_status().

Every operation returns a new Reservation or a TransitionError; the input is
never modified.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from core.config import Settings, get_settings
from core.utils_datetime import TimeZoneNormalizer, ensure_utc, get_normalizer
from domain.enums import ACTIVE_STATUSES, LifecycleAction, ReservationStatus, TransitionErrorKind
from domain.models import Actor, Reservation, ReservationChanges
from services.approval_policy import PolicyResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionError:
    """Rejected transition or edit."""
    kind: TransitionErrorKind
    message: str
    reservation_id: Optional[str] = None


@dataclass(frozen=True)
class FieldChange:
    """One changed field, for audit display."""
    field: str
    old_value: Any
    new_value: Any


TransitionOutcome = Union[Reservation, TransitionError]


# Allowed source statuses per action
_ALLOWED_FROM: Dict[LifecycleAction, frozenset] = {
    LifecycleAction.APPROVE: frozenset({ReservationStatus.PENDING}),
    LifecycleAction.DENY: frozenset({ReservationStatus.PENDING}),
    LifecycleAction.CANCEL: ACTIVE_STATUSES,
}

_TARGET: Dict[LifecycleAction, ReservationStatus] = {
    LifecycleAction.APPROVE: ReservationStatus.APPROVED,
    LifecycleAction.DENY: ReservationStatus.DENIED,
    LifecycleAction.CANCEL: ReservationStatus.CANCELLED,
}


def create_initial_status(policy_result: PolicyResult) -> ReservationStatus:
    """Status a new reservation starts in."""
    if policy_result.auto_approval:
        return ReservationStatus.APPROVED
    return ReservationStatus.PENDING


def effective_status(reservation: Reservation, now: datetime) -> ReservationStatus:
    """
    Status as residents and administrators should see it.

    An approved reservation whose end time has passed is completed.
    """
    if (
        reservation.status == ReservationStatus.APPROVED
        and reservation.end_time <= ensure_utc(now)
    ):
        return ReservationStatus.COMPLETED
    return reservation.status


def _reject(kind: TransitionErrorKind, message: str, reservation: Reservation) -> TransitionError:
    logger.info(f"Reservation {reservation.id}: {kind.value} ({message})")
    return TransitionError(kind=kind, message=message, reservation_id=reservation.id)


def apply_transition(
    reservation: Reservation,
    action: LifecycleAction,
    actor: Actor,
    reason: Optional[str] = None,
    normalizer: Optional[TimeZoneNormalizer] = None
) -> TransitionOutcome:
    """
    Apply an administrator or resident action to a reservation.

    Args:
        reservation: Current reservation
        action: Requested action
        actor: Principal requesting it
        reason: Denial reason (required for deny)
        normalizer: Clock source (defaults to configured offset, system clock)

    Returns:
        The updated reservation, or a TransitionError
    """
    normalizer = normalizer or get_normalizer()
    now = normalizer.now()
    action = LifecycleAction(action)
    current = effective_status(reservation, now)

    if current not in _ALLOWED_FROM[action]:
        return _reject(
            TransitionErrorKind.INVALID_TRANSITION,
            f"Cannot {action.value} a reservation that is {current.value}",
            reservation,
        )

    if action in (LifecycleAction.APPROVE, LifecycleAction.DENY) and not actor.is_admin:
        return _reject(
            TransitionErrorKind.NOT_PERMITTED,
            f"Only administrators can {action.value} reservations",
            reservation,
        )

    update: Dict[str, Any] = {"status": _TARGET[action], "updated_at": now}

    if action == LifecycleAction.DENY:
        cleaned = (reason or "").strip()
        if not cleaned:
            return _reject(
                TransitionErrorKind.MISSING_DENIAL_REASON,
                "A reason is required to deny a reservation",
                reservation,
            )
        update["denial_reason"] = cleaned

    if action == LifecycleAction.CANCEL and not actor.is_admin:
        if actor.user_id != reservation.user_id:
            return _reject(
                TransitionErrorKind.NOT_PERMITTED,
                "You can only cancel your own reservations",
                reservation,
            )
        if reservation.start_time <= now:
            return _reject(
                TransitionErrorKind.INVALID_TRANSITION,
                "Reservations that have already started cannot be cancelled",
                reservation,
            )

    updated = reservation.model_copy(update=update)
    logger.info(
        f"Reservation {reservation.id}: {reservation.status.value} -> "
        f"{updated.status.value} by {actor.user_id}"
    )
    return updated


# ============================================================================
# Editing
# ============================================================================

def can_edit(reservation: Reservation, now: datetime) -> bool:
    """True while the reservation is pending/approved and has not started."""
    return (
        reservation.status in ACTIVE_STATUSES
        and reservation.start_time > ensure_utc(now)
    )


def apply_edit(
    reservation: Reservation,
    changes: ReservationChanges,
    actor: Actor,
    normalizer: Optional[TimeZoneNormalizer] = None,
    settings: Optional[Settings] = None
) -> TransitionOutcome:
    """
    Apply time or attribute changes to a reservation.

    The new interval is not validated here; callers run it through
    validate_candidate first. Status is kept unless ``edit_resets_approval``
    is set, in which case an approved reservation whose time moved goes back
    to pending.

    Args:
        reservation: Current reservation
        changes: Fields to change; None leaves a field as is
        actor: Owner or administrator
        normalizer: Clock source
        settings: Settings (defaults to the singleton)

    Returns:
        The edited reservation, or a TransitionError
    """
    normalizer = normalizer or get_normalizer()
    settings = settings or get_settings()
    now = normalizer.now()

    if not actor.is_admin and actor.user_id != reservation.user_id:
        return _reject(
            TransitionErrorKind.NOT_PERMITTED,
            "You can only edit your own reservations",
            reservation,
        )

    if not can_edit(reservation, now):
        return _reject(
            TransitionErrorKind.NOT_EDITABLE,
            "Only upcoming pending or approved reservations can be edited",
            reservation,
        )

    start_time = changes.start_time or reservation.start_time
    end_time = changes.end_time or reservation.end_time
    if end_time <= start_time:
        return _reject(
            TransitionErrorKind.NOT_EDITABLE,
            "End time must be after start time",
            reservation,
        )

    requests = reservation.special_requests
    request_update = {
        key: value
        for key, value in (
            ("visitor_count", changes.visitor_count),
            ("notes", changes.notes),
            ("grill_usage", changes.grill_usage),
        )
        if value is not None
    }

    update: Dict[str, Any] = {
        "start_time": start_time,
        "end_time": end_time,
        "special_requests": requests.model_copy(update=request_update),
        "updated_at": now,
    }

    time_moved = (start_time, end_time) != (reservation.start_time, reservation.end_time)
    if (
        settings.edit_resets_approval
        and time_moved
        and reservation.status == ReservationStatus.APPROVED
    ):
        update["status"] = ReservationStatus.PENDING

    edited = reservation.model_copy(update=update)
    logger.info(f"Reservation {reservation.id} edited by {actor.user_id}")
    return edited


def diff_reservation(original: Reservation, updated: Reservation) -> List[FieldChange]:
    """
    List what an edit changed.

    Args:
        original: Reservation before the edit
        updated: Reservation after the edit

    Returns:
        FieldChange entries for time, visitor count, grill usage and notes
    """
    changes = []

    if (original.start_time, original.end_time) != (updated.start_time, updated.end_time):
        changes.append(FieldChange(
            field="time",
            old_value=(original.start_time, original.end_time),
            new_value=(updated.start_time, updated.end_time),
        ))

    before, after = original.special_requests, updated.special_requests

    if (before.visitor_count or 1) != (after.visitor_count or 1):
        changes.append(FieldChange("visitor_count", before.visitor_count or 1, after.visitor_count or 1))

    if before.grill_usage != after.grill_usage:
        changes.append(FieldChange("grill_usage", before.grill_usage, after.grill_usage))

    if (before.notes or "") != (after.notes or ""):
        changes.append(FieldChange("notes", before.notes, after.notes))

    return changes
