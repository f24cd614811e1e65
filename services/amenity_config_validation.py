"""
Administrator-side checks on amenity configuration.

Structural constraints (capacity range, opening before closing, at least one
operating day) are enforced by the Amenity model itself. These are the
business rules on top, split into blocking errors and advisory warnings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from core.amenity_policy import get_type_policy
from domain.enums import AmenityType
from domain.models import Amenity


MIN_AUTO_APPROVAL_MINUTES = 15
MAX_AUTO_APPROVAL_MINUTES = 480

# Recommended head count range for the community lounge
LOUNGE_CAPACITY_RANGE = (15, 25)


class ConfigSeverity(Enum):
    """Configuration finding severity levels."""
    ERROR = "error"  # Blocks saving
    WARNING = "warning"  # Allowed but flagged


@dataclass
class ConfigFinding:
    severity: ConfigSeverity
    field: str
    message: str


@dataclass
class AmenityConfigReport:
    """Errors and warnings for one amenity configuration."""
    errors: List[ConfigFinding] = field(default_factory=list)
    warnings: List[ConfigFinding] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, severity: ConfigSeverity, field_name: str, message: str):
        finding = ConfigFinding(severity=severity, field=field_name, message=message)
        if severity == ConfigSeverity.ERROR:
            self.errors.append(finding)
        else:
            self.warnings.append(finding)

    def get_error_messages(self) -> List[str]:
        return [e.message for e in self.errors]

    def get_warning_messages(self) -> List[str]:
        return [w.message for w in self.warnings]


def validate_amenity_config(amenity: Amenity) -> AmenityConfigReport:
    """
    Check an amenity configuration before an administrator saves it.

    Args:
        amenity: Amenity configuration

    Returns:
        AmenityConfigReport
    """
    report = AmenityConfigReport()
    policy = get_type_policy(amenity.type)
    max_minutes = amenity.auto_approval_rules.max_duration_minutes

    if not MIN_AUTO_APPROVAL_MINUTES <= max_minutes <= MAX_AUTO_APPROVAL_MINUTES:
        report.add(
            ConfigSeverity.ERROR,
            "auto_approval_rules.max_duration_minutes",
            f"Maximum duration must be between {MIN_AUTO_APPROVAL_MINUTES} "
            f"and {MAX_AUTO_APPROVAL_MINUTES} minutes",
        )
    elif policy.max_duration_minutes is not None and max_minutes > policy.max_duration_minutes:
        report.add(
            ConfigSeverity.WARNING,
            "auto_approval_rules.max_duration_minutes",
            f"Recommended maximum duration for {amenity.type.value} is "
            f"{policy.max_duration_minutes} minutes",
        )

    if amenity.type == AmenityType.LOUNGE:
        if not amenity.requires_approval:
            report.add(
                ConfigSeverity.ERROR,
                "requires_approval",
                "Community Lounge must require approval",
            )
        low, high = LOUNGE_CAPACITY_RANGE
        if not low <= amenity.capacity <= high:
            report.add(
                ConfigSeverity.WARNING,
                "capacity",
                f"Recommended capacity for Community Lounge is {low}-{high} people",
            )

    if amenity.special_requirements.requires_deposit and amenity.special_requirements.deposit_amount <= 0:
        report.add(
            ConfigSeverity.ERROR,
            "special_requirements.deposit_amount",
            "A deposit amount is required when a deposit is required",
        )

    return report
