"""Domain models using Pydantic v2 for the amenity booking core."""

from datetime import datetime, time
from typing import Any, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.utils_datetime import ensure_utc, intervals_overlap, minutes_between
from .enums import ActorRole, AmenityType, DayOfWeek, PolicyReason, ReservationStatus


# Source records number weekdays from Sunday = 0
_SUNDAY_FIRST = [
    DayOfWeek.SUNDAY,
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
]


class OperatingHours(BaseModel):
    """Daily opening window in local wall-clock time."""

    start: time = Field(default=time(6, 0), description="Opening time (HH:MM)")
    end: time = Field(default=time(22, 0), description="Closing time (HH:MM)")
    days: Set[DayOfWeek] = Field(default_factory=lambda: set(DayOfWeek), description="Operating weekdays")

    model_config = ConfigDict(frozen=True)

    @field_validator("days", mode="before")
    @classmethod
    def parse_days(cls, v: Any) -> Any:
        """Accept weekday names or Sunday-first integers (0 = Sunday)."""
        if v is None:
            return v
        parsed = []
        for day in v:
            if isinstance(day, bool):
                raise ValueError("days must be weekday names or integers 0-6")
            if isinstance(day, int):
                if not 0 <= day <= 6:
                    raise ValueError("day numbers must be between 0 (Sunday) and 6 (Saturday)")
                parsed.append(_SUNDAY_FIRST[day])
            elif isinstance(day, str):
                parsed.append(day.strip().lower())
            else:
                parsed.append(day)
        return parsed

    @model_validator(mode="after")
    def check_window(self) -> "OperatingHours":
        if self.start >= self.end:
            raise ValueError("operating hours must start before they end")
        if not self.days:
            raise ValueError("at least one operating day is required")
        return self

    def is_open_on(self, day: DayOfWeek) -> bool:
        return day in self.days

    def contains(self, local_start: datetime, local_end: datetime) -> bool:
        """
        Check that a local interval fits inside one operating day.

        Args:
            local_start: Interval start in local wall-clock time
            local_end: Interval end in local wall-clock time

        Returns:
            True if both ends fall on the same operating weekday within the window
        """
        if local_start.date() != local_end.date():
            return False
        if not self.is_open_on(DayOfWeek.from_date(local_start.date())):
            return False
        return self.start <= local_start.time() and local_end.time() <= self.end


class AutoApprovalRules(BaseModel):
    """Bounds an administrator configures for auto-approval."""

    max_duration_minutes: int = Field(default=60, ge=1)
    max_reservations_per_day: int = Field(default=3, ge=1)

    model_config = ConfigDict(frozen=True)


class SpecialRequirements(BaseModel):
    """Deposit requirements shown to residents."""

    requires_deposit: bool = False
    deposit_amount: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(frozen=True)


class Amenity(BaseModel):
    """Bookable shared facility, as configured by an administrator."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    type: AmenityType
    description: Optional[str] = Field(None, max_length=500)
    capacity: int = Field(default=1, ge=1, le=100, description="Informational; not an occupancy limit")
    operating_hours: OperatingHours = Field(default_factory=OperatingHours)
    auto_approval_rules: AutoApprovalRules = Field(default_factory=AutoApprovalRules)
    special_requirements: SpecialRequirements = Field(default_factory=SpecialRequirements)
    requires_approval: bool = False
    is_active: bool = True

    model_config = ConfigDict(
        str_strip_whitespace=True,
        from_attributes=True,
        frozen=True,
    )


class SpecialRequests(BaseModel):
    """Resident-supplied extras attached to a reservation."""

    visitor_count: Optional[int] = None
    notes: Optional[str] = None
    grill_usage: bool = False

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)


class Reservation(BaseModel):
    """Reservation record as held by the backend of record."""

    id: str = Field(..., min_length=1)
    amenity_id: str
    user_id: str
    start_time: datetime = Field(..., description="UTC instant")
    end_time: datetime = Field(..., description="UTC instant")
    status: ReservationStatus = ReservationStatus.PENDING
    special_requests: SpecialRequests = Field(default_factory=SpecialRequests)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    denial_reason: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(
        str_strip_whitespace=True,
        from_attributes=True,
        frozen=True,
    )

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def normalize_instant(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_consistency(self) -> "Reservation":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.status == ReservationStatus.DENIED and not (self.denial_reason or "").strip():
            raise ValueError("denied reservations require a denial_reason")
        return self

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return intervals_overlap(self.start_time, self.end_time, start, end)


class Actor(BaseModel):
    """The principal performing an operation."""

    user_id: str = Field(..., min_length=1)
    role: ActorRole = ActorRole.RESIDENT

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


class BookingCandidate(BaseModel):
    """A proposed reservation not yet committed to the backend."""

    amenity_id: str
    amenity_type: Optional[AmenityType] = None
    user_id: str
    start_time: datetime
    end_time: datetime
    visitor_count: Optional[int] = None
    notes: Optional[str] = None
    grill_usage: bool = False
    reservation_id: Optional[str] = Field(None, description="Set when the candidate edits an existing reservation")

    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    @classmethod
    def from_reservation(cls, reservation: Reservation, amenity: Optional[Amenity] = None) -> "BookingCandidate":
        """Candidate describing an existing reservation's current booking."""
        requests = reservation.special_requests
        return cls(
            amenity_id=reservation.amenity_id,
            amenity_type=amenity.type if amenity else None,
            user_id=reservation.user_id,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            visitor_count=requests.visitor_count,
            notes=requests.notes,
            grill_usage=requests.grill_usage,
            reservation_id=reservation.id,
        )


class ReservationChanges(BaseModel):
    """Fields a reservation edit may change."""

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    visitor_count: Optional[int] = None
    notes: Optional[str] = None
    grill_usage: Optional[bool] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        return ensure_utc(v)


class Slot(BaseModel):
    """Candidate interval offered for booking."""

    start_time: datetime
    end_time: datetime
    duration: int = Field(..., description="Minutes")
    auto_approval: bool
    approval_reason: PolicyReason = PolicyReason.AUTO_APPROVED
    is_current: bool = False

    model_config = ConfigDict(frozen=True)
