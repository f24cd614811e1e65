"""Scheduling and approval services for the amenity booking core."""

from .amenity_config_validation import AmenityConfigReport, validate_amenity_config
from .approval_policy import PolicyResult, decide_policy
from .availability import compute_availability
from .booking_validator import ValidationResult, validate_candidate
from .reservation_lifecycle import (
    FieldChange,
    TransitionError,
    apply_edit,
    apply_transition,
    can_edit,
    create_initial_status,
    diff_reservation,
    effective_status,
)

__all__ = [
    "compute_availability",
    "validate_candidate",
    "ValidationResult",
    "decide_policy",
    "PolicyResult",
    "create_initial_status",
    "apply_transition",
    "TransitionError",
    "apply_edit",
    "can_edit",
    "effective_status",
    "diff_reservation",
    "FieldChange",
    "validate_amenity_config",
    "AmenityConfigReport",
]
