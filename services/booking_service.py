"""
Booking orchestration.

Wires the external collaborators (amenity provider, reservation store, clock)
to the validator, policy engine, availability calculator and lifecycle.
Availability is a prediction from the store's current snapshot; the store's
conflict check at commit time is authoritative, and a conflict there comes
back as a SubmissionResult asking the resident to pick another slot.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from core.config import Settings, get_settings
from core.logging import BookingLogContext
from core.utils_datetime import TimeZoneNormalizer, get_normalizer
from domain.enums import ACTIVE_STATUSES, LifecycleAction
from domain.models import (
    Actor,
    Amenity,
    BookingCandidate,
    Reservation,
    ReservationChanges,
    Slot,
    SpecialRequests,
)
from services.amenity_config_validation import AmenityConfigReport, ConfigSeverity, validate_amenity_config
from services.approval_policy import PolicyResult, decide_policy
from services.availability import compute_availability
from services.booking_validator import ValidationResult, validate_candidate
from services.reservation_lifecycle import (
    FieldChange,
    TransitionError,
    apply_edit,
    apply_transition,
    create_initial_status,
    diff_reservation,
)
from services.reservation_store import (
    AmenityProvider,
    ReservationConflictError,
    ReservationStore,
)


logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "That time slot was just reserved. Please pick another."


@dataclass
class SubmissionResult:
    """Outcome of submitting a new reservation or an edit."""
    reservation: Optional[Reservation] = None
    validation: Optional[ValidationResult] = None
    policy: Optional[PolicyResult] = None
    error: Optional[TransitionError] = None
    conflict: bool = False
    message: Optional[str] = None
    changes: List[FieldChange] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.reservation is not None


class BookingService:
    """Service-layer entry point used by the UI/orchestration layer."""

    def __init__(
        self,
        amenities: AmenityProvider,
        store: ReservationStore,
        normalizer: Optional[TimeZoneNormalizer] = None,
        settings: Optional[Settings] = None
    ):
        self.amenities = amenities
        self.store = store
        self.normalizer = normalizer or get_normalizer()
        self.settings = settings or get_settings()

    def configure_amenity(self, amenity: Amenity, actor: Actor) -> AmenityConfigReport:
        """
        Check and store an amenity configuration on behalf of an administrator.

        The amenity is only stored when the report has no errors.

        Args:
            amenity: New or updated amenity configuration
            actor: Acting user; must be an administrator

        Returns:
            AmenityConfigReport with blocking errors and advisory warnings
        """
        if not actor.is_admin:
            report = AmenityConfigReport()
            report.add(ConfigSeverity.ERROR, "actor", "Only administrators can configure amenities")
            return report

        report = validate_amenity_config(amenity)
        if not report.is_valid:
            logger.info(f"Amenity {amenity.id} configuration rejected: {report.get_error_messages()}")
            return report

        for warning in report.get_warning_messages():
            logger.warning(f"Amenity {amenity.id}: {warning}")
        self.amenities.add(amenity)
        return report

    def available_slots(
        self,
        amenity_id: str,
        target_date: date,
        duration_minutes: int,
        actor: Actor,
        editing_id: Optional[str] = None
    ) -> List[Slot]:
        """
        Slots a resident can pick for an amenity on a local day.

        Args:
            amenity_id: Amenity to book
            target_date: Local calendar date
            duration_minutes: Requested slot length
            actor: Acting user
            editing_id: Reservation being edited, if any

        Returns:
            Future slots ordered by start time
        """
        amenity = self.amenities.get_amenity(amenity_id)
        day_start, day_end = self.normalizer.day_bounds(target_date)
        existing = self.store.list_for_amenity(
            amenity_id, start=day_start, end=day_end, statuses=ACTIVE_STATUSES
        )
        editing = self.store.get(editing_id) if editing_id else None

        return compute_availability(
            amenity,
            target_date,
            duration_minutes,
            existing,
            editing=editing,
            actor=actor,
            normalizer=self.normalizer,
            settings=self.settings,
            exclude_past=True,
        )

    def submit(
        self,
        candidate: BookingCandidate,
        actor: Actor
    ) -> SubmissionResult:
        """
        Validate, decide approval and commit a new reservation.

        Args:
            candidate: Proposed reservation
            actor: Submitting principal

        Returns:
            SubmissionResult with the stored reservation, or why it was not stored
        """
        with BookingLogContext(logger, amenity_id=candidate.amenity_id, user_id=actor.user_id) as log:
            amenity = self.amenities.get_amenity(candidate.amenity_id)

            validation = validate_candidate(
                candidate, amenity, actor, normalizer=self.normalizer, settings=self.settings
            )
            if not validation.valid:
                log.info("Reservation rejected", kind=validation.kind.value)
                return SubmissionResult(validation=validation, message=validation.message)

            user_reservations = self.store.list_for_user(candidate.user_id, amenity.id)
            policy = decide_policy(
                candidate,
                user_reservations,
                amenity=amenity,
                normalizer=self.normalizer,
                settings=self.settings,
            )

            now = self.normalizer.now()
            reservation = Reservation(
                id=uuid.uuid4().hex,
                amenity_id=amenity.id,
                user_id=candidate.user_id,
                start_time=candidate.start_time,
                end_time=candidate.end_time,
                status=create_initial_status(policy),
                special_requests=SpecialRequests(
                    visitor_count=candidate.visitor_count,
                    notes=candidate.notes,
                    grill_usage=candidate.grill_usage,
                ),
                created_at=now,
                updated_at=now,
            )

            try:
                stored = self.store.create(reservation)
            except ReservationConflictError as e:
                log.bind(reservation_id=reservation.id).warning(f"Slot taken at commit: {e}")
                return SubmissionResult(
                    validation=validation,
                    policy=policy,
                    conflict=True,
                    message=SLOT_TAKEN_MESSAGE,
                )

            log.bind(reservation_id=stored.id).info(
                "Reservation created",
                status=stored.status.value,
                reason=policy.reason.value,
            )
            return SubmissionResult(
                reservation=stored,
                validation=validation,
                policy=policy,
                message=policy.message,
            )

    def transition(
        self,
        reservation_id: str,
        action: LifecycleAction,
        actor: Actor,
        reason: Optional[str] = None
    ) -> Union[Reservation, TransitionError]:
        """
        Approve, deny or cancel a stored reservation.

        Returns:
            The stored updated reservation, or a TransitionError
        """
        reservation = self.store.get(reservation_id)
        outcome = apply_transition(reservation, action, actor, reason, normalizer=self.normalizer)
        if isinstance(outcome, TransitionError):
            return outcome
        return self.store.save(outcome)

    def edit(
        self,
        reservation_id: str,
        changes: ReservationChanges,
        actor: Actor
    ) -> SubmissionResult:
        """
        Change a reservation's time or attributes.

        The edited booking is re-validated on behalf of its owner before it is
        saved.

        Returns:
            SubmissionResult; ``changes`` lists what moved
        """
        original = self.store.get(reservation_id)
        outcome = apply_edit(original, changes, actor, normalizer=self.normalizer, settings=self.settings)
        if isinstance(outcome, TransitionError):
            return SubmissionResult(error=outcome, message=outcome.message)

        amenity = self.amenities.get_amenity(original.amenity_id)
        owner = actor if actor.user_id == original.user_id else Actor(user_id=original.user_id)
        validation = validate_candidate(
            BookingCandidate.from_reservation(outcome, amenity),
            amenity,
            owner,
            normalizer=self.normalizer,
            settings=self.settings,
        )
        if not validation.valid:
            return SubmissionResult(validation=validation, message=validation.message)

        try:
            stored = self.store.save(outcome)
        except ReservationConflictError:
            logger.warning(f"Edit of reservation {reservation_id} lost its slot at commit")
            return SubmissionResult(validation=validation, conflict=True, message=SLOT_TAKEN_MESSAGE)

        return SubmissionResult(
            reservation=stored,
            validation=validation,
            changes=diff_reservation(original, stored),
        )
