"""Domain enums for the amenity booking core."""

from datetime import date
from enum import Enum


class AmenityType(str, Enum):
    """Amenity categories."""

    JACUZZI = "jacuzzi"
    COLD_TUB = "cold-tub"
    YOGA_DECK = "yoga-deck"
    LOUNGE = "lounge"
    MAINTENANCE = "maintenance"


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        """Pending and approved reservations hold their slot."""
        return self in ACTIVE_STATUSES


TERMINAL_STATUSES = frozenset({
    ReservationStatus.DENIED,
    ReservationStatus.CANCELLED,
    ReservationStatus.COMPLETED,
})

ACTIVE_STATUSES = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.APPROVED,
})


class ActorRole(str, Enum):
    """Role of the acting principal."""

    RESIDENT = "resident"
    ADMIN = "admin"


class LifecycleAction(str, Enum):
    """Actions that move a reservation between statuses."""

    APPROVE = "approve"
    DENY = "deny"
    CANCEL = "cancel"


class DayOfWeek(str, Enum):
    """Days of the week."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return list(cls)[value.weekday()]


class ValidationErrorKind(str, Enum):
    """Reasons a booking candidate is rejected."""

    PAST_START_TIME = "past_start_time"
    INSUFFICIENT_LEAD_TIME = "insufficient_lead_time"
    INVERTED_INTERVAL = "inverted_interval"
    DURATION_TOO_LONG = "duration_too_long"
    VISITOR_COUNT_OUT_OF_RANGE = "visitor_count_out_of_range"
    ADMIN_RESTRICTED_TYPE = "admin_restricted_type"
    AMENITY_INACTIVE = "amenity_inactive"
    OUTSIDE_OPERATING_HOURS = "outside_operating_hours"
    NOTES_TOO_LONG = "notes_too_long"
    AMENITY_MISMATCH = "amenity_mismatch"
    USER_MISMATCH = "user_mismatch"


class TransitionErrorKind(str, Enum):
    """Reasons a lifecycle transition or edit is rejected."""

    INVALID_TRANSITION = "invalid_transition"
    MISSING_DENIAL_REASON = "missing_denial_reason"
    NOT_PERMITTED = "not_permitted"
    NOT_EDITABLE = "not_editable"


class PolicyReason(str, Enum):
    """Why a candidate was or was not auto-approved."""

    AUTO_APPROVED = "auto_approved"
    SAME_DAY_DUPLICATE = "same_day_duplicate"
    AMENITY_REQUIRES_APPROVAL = "amenity_requires_approval"
    EXCEEDS_MAX_DURATION = "exceeds_max_duration"
    DAILY_LIMIT_REACHED = "daily_limit_reached"
