"""
Booking candidate validation.

Checks a single proposed reservation against the temporal and role rules.
Rules run in a fixed order and the first failure is reported, so the resident
is re-prompted about the most fundamental problem first.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from core.amenity_policy import get_type_policy
from core.config import Settings, get_settings
from core.utils_datetime import TimeZoneNormalizer, get_normalizer
from domain.enums import AmenityType, ValidationErrorKind
from domain.models import Actor, Amenity, BookingCandidate


logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of validating a booking candidate."""
    valid: bool
    kind: Optional[ValidationErrorKind] = None
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(
        cls,
        kind: ValidationErrorKind,
        message: str,
        **details: Any
    ) -> "ValidationResult":
        return cls(valid=False, kind=kind, message=message, details=details)


@dataclass
class _RuleContext:
    candidate: BookingCandidate
    amenity: Amenity
    actor: Actor
    amenity_type: AmenityType
    normalizer: TimeZoneNormalizer
    settings: Settings


Rule = Callable[[_RuleContext], Optional[ValidationResult]]


# ============================================================================
# Candidate identity
# ============================================================================

def _check_candidate_identity(ctx: _RuleContext) -> Optional[ValidationResult]:
    """The candidate must name the amenity being checked and, for residents, the acting user."""
    candidate, amenity = ctx.candidate, ctx.amenity

    if candidate.amenity_id != amenity.id:
        return ValidationResult.fail(
            ValidationErrorKind.AMENITY_MISMATCH,
            "Reservation does not match the selected amenity",
            amenity_id=candidate.amenity_id,
            expected_amenity_id=amenity.id,
        )
    if candidate.amenity_type is not None and candidate.amenity_type != amenity.type:
        return ValidationResult.fail(
            ValidationErrorKind.AMENITY_MISMATCH,
            f"{amenity.name} is a {amenity.type.value} amenity",
            amenity_type=candidate.amenity_type.value,
            expected_amenity_type=amenity.type.value,
        )
    if not ctx.actor.is_admin and candidate.user_id != ctx.actor.user_id:
        return ValidationResult.fail(
            ValidationErrorKind.USER_MISMATCH,
            "You can only make reservations for yourself",
            user_id=candidate.user_id,
        )
    return None


# ============================================================================
# Temporal rules
# ============================================================================

def _check_start_in_future(ctx: _RuleContext) -> Optional[ValidationResult]:
    if ctx.normalizer.is_past(ctx.candidate.start_time):
        return ValidationResult.fail(
            ValidationErrorKind.PAST_START_TIME,
            "Start time must be in the future",
        )
    return None


def _check_lead_time(ctx: _RuleContext) -> Optional[ValidationResult]:
    policy = get_type_policy(ctx.amenity_type)
    if not policy.has_extended_lead_time:
        return None

    earliest = ctx.normalizer.now() + timedelta(hours=policy.lead_time_hours)
    if ctx.candidate.start_time < earliest:
        return ValidationResult.fail(
            ValidationErrorKind.INSUFFICIENT_LEAD_TIME,
            f"{ctx.amenity.name} reservations must be made at least "
            f"{policy.lead_time_hours} hours in advance",
            lead_time_hours=policy.lead_time_hours,
        )
    return None


def _check_interval_order(ctx: _RuleContext) -> Optional[ValidationResult]:
    if ctx.candidate.end_time <= ctx.candidate.start_time:
        return ValidationResult.fail(
            ValidationErrorKind.INVERTED_INTERVAL,
            "End time must be after start time",
        )
    return None


def _check_duration_cap(ctx: _RuleContext) -> Optional[ValidationResult]:
    cap = timedelta(hours=ctx.settings.max_reservation_hours)
    if ctx.candidate.end_time - ctx.candidate.start_time > cap:
        return ValidationResult.fail(
            ValidationErrorKind.DURATION_TOO_LONG,
            f"Reservation cannot exceed {ctx.settings.max_reservation_hours} hours",
            max_hours=ctx.settings.max_reservation_hours,
        )
    return None


# ============================================================================
# Amenity and role rules
# ============================================================================

def _check_visitor_count(ctx: _RuleContext) -> Optional[ValidationResult]:
    count = ctx.candidate.visitor_count
    if count is None or not get_type_policy(ctx.amenity_type).exposes_visitor_count:
        return None

    if count < 1:
        return ValidationResult.fail(
            ValidationErrorKind.VISITOR_COUNT_OUT_OF_RANGE,
            "At least 1 visitor is required",
            visitor_count=count,
        )
    if count > ctx.amenity.capacity:
        return ValidationResult.fail(
            ValidationErrorKind.VISITOR_COUNT_OUT_OF_RANGE,
            f"Maximum {ctx.amenity.capacity} visitors allowed",
            visitor_count=count,
            capacity=ctx.amenity.capacity,
        )
    return None


def _check_admin_restriction(ctx: _RuleContext) -> Optional[ValidationResult]:
    if ctx.actor.is_admin and not get_type_policy(ctx.amenity_type).admin_bookable:
        return ValidationResult.fail(
            ValidationErrorKind.ADMIN_RESTRICTED_TYPE,
            "Administrators can only make maintenance reservations",
            amenity_type=ctx.amenity_type.value,
        )
    return None


def _check_amenity_active(ctx: _RuleContext) -> Optional[ValidationResult]:
    if not ctx.amenity.is_active:
        return ValidationResult.fail(
            ValidationErrorKind.AMENITY_INACTIVE,
            f"{ctx.amenity.name} is not currently available for booking",
        )
    return None


def _check_operating_hours(ctx: _RuleContext) -> Optional[ValidationResult]:
    hours = ctx.amenity.operating_hours
    local_start = ctx.normalizer.to_local(ctx.candidate.start_time)
    local_end = ctx.normalizer.to_local(ctx.candidate.end_time)

    if not hours.contains(local_start, local_end):
        return ValidationResult.fail(
            ValidationErrorKind.OUTSIDE_OPERATING_HOURS,
            f"{ctx.amenity.name} is open {hours.start.strftime('%H:%M')}-"
            f"{hours.end.strftime('%H:%M')} on its operating days",
            local_start=local_start.isoformat(),
            local_end=local_end.isoformat(),
        )
    return None


def _check_notes_length(ctx: _RuleContext) -> Optional[ValidationResult]:
    notes = ctx.candidate.notes or ""
    if len(notes) > ctx.settings.max_notes_length:
        return ValidationResult.fail(
            ValidationErrorKind.NOTES_TOO_LONG,
            f"Notes must be less than {ctx.settings.max_notes_length} characters",
            length=len(notes),
        )
    return None


RULES: List[Rule] = [
    _check_candidate_identity,
    _check_start_in_future,
    _check_lead_time,
    _check_interval_order,
    _check_duration_cap,
    _check_visitor_count,
    _check_admin_restriction,
    _check_amenity_active,
    _check_operating_hours,
    _check_notes_length,
]


# ============================================================================
# Entry point
# ============================================================================

def validate_candidate(
    candidate: BookingCandidate,
    amenity: Amenity,
    actor: Actor,
    normalizer: Optional[TimeZoneNormalizer] = None,
    settings: Optional[Settings] = None
) -> ValidationResult:
    """
    Validate a booking candidate.

    Args:
        candidate: Proposed reservation
        amenity: Configuration of the amenity being booked
        actor: Principal submitting the candidate
        normalizer: Local time conversion and clock (defaults to configured offset, system clock)
        settings: Settings (defaults to the singleton)

    Returns:
        ValidationResult; on failure ``kind`` names the first rule violated

    Category rules always follow ``amenity.type``; a candidate labelled with
    another type or amenity, or a resident booking under another user id, is
    rejected before any other rule runs.
    """
    ctx = _RuleContext(
        candidate=candidate,
        amenity=amenity,
        actor=actor,
        amenity_type=amenity.type,
        normalizer=normalizer or get_normalizer(),
        settings=settings or get_settings(),
    )

    for rule in RULES:
        failure = rule(ctx)
        if failure is not None:
            logger.debug(
                f"Candidate for amenity {candidate.amenity_id} by {actor.user_id} "
                f"rejected: {failure.kind.value}"
            )
            return failure

    return ValidationResult.ok()
