"""
Per-category booking policy.

Each amenity type carries its own policy parameters so that branching on the
category is a table lookup. Adding a category means adding a row here.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from domain.enums import AmenityType


@dataclass(frozen=True)
class AmenityTypePolicy:
    """Booking policy attached to an amenity category."""
    lead_time_hours: int = 0  # Minimum advance notice beyond "in the future"
    max_duration_minutes: Optional[int] = None  # Category cap below the global hard cap
    requires_approval_on_duplicate: bool = True  # Same-day second booking goes to review
    exposes_visitor_count: bool = False  # Resident declares a head count
    admin_bookable: bool = False  # Administrators may book this category

    @property
    def has_extended_lead_time(self) -> bool:
        return self.lead_time_hours > 0


AMENITY_TYPE_POLICIES: Dict[AmenityType, AmenityTypePolicy] = {
    AmenityType.JACUZZI: AmenityTypePolicy(),
    AmenityType.COLD_TUB: AmenityTypePolicy(),
    AmenityType.YOGA_DECK: AmenityTypePolicy(),
    AmenityType.LOUNGE: AmenityTypePolicy(
        lead_time_hours=24,
        max_duration_minutes=240,
        exposes_visitor_count=True,
    ),
    AmenityType.MAINTENANCE: AmenityTypePolicy(admin_bookable=True),
}


def get_type_policy(amenity_type: AmenityType) -> AmenityTypePolicy:
    """
    Look up the policy for an amenity category.

    Args:
        amenity_type: Amenity category

    Returns:
        The category's policy

    Raises:
        KeyError: If the category has no policy registered
    """
    return AMENITY_TYPE_POLICIES[AmenityType(amenity_type)]
