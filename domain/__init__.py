"""Domain layer for the amenity booking core."""

from .enums import (
    AmenityType,
    ReservationStatus,
    ActorRole,
    LifecycleAction,
    DayOfWeek,
    ValidationErrorKind,
    TransitionErrorKind,
    PolicyReason,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
)
from .models import (
    OperatingHours,
    AutoApprovalRules,
    SpecialRequirements,
    Amenity,
    SpecialRequests,
    Reservation,
    Actor,
    BookingCandidate,
    ReservationChanges,
    Slot,
)

__all__ = [
    # Enums
    "AmenityType",
    "ReservationStatus",
    "ActorRole",
    "LifecycleAction",
    "DayOfWeek",
    "ValidationErrorKind",
    "TransitionErrorKind",
    "PolicyReason",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    # Models
    "OperatingHours",
    "AutoApprovalRules",
    "SpecialRequirements",
    "Amenity",
    "SpecialRequests",
    "Reservation",
    "Actor",
    "BookingCandidate",
    "ReservationChanges",
    "Slot",
]
