"""
Tests for the reservation store and booking orchestration.
"""

from datetime import date

import pytest

from domain import (
    Amenity,
    AmenityType,
    BookingCandidate,
    LifecycleAction,
    PolicyReason,
    ReservationChanges,
    ReservationStatus,
    TransitionErrorKind,
    ValidationErrorKind,
)
from services.booking_service import SLOT_TAKEN_MESSAGE, BookingService
from services.reservation_lifecycle import TransitionError
from services.reservation_store import (
    AmenityNotFoundError,
    InMemoryReservationStore,
    ReservationConflictError,
    ReservationNotFoundError,
)


@pytest.mark.unit
class TestInMemoryReservationStore:
    """Tests for conflict arbitration in the reference store."""

    def test_create_and_get(self, reservation_store, make_reservation, at):
        reservation = make_reservation(at(2, 10), at(2, 11))
        reservation_store.create(reservation)
        assert reservation_store.get(reservation.id) == reservation

    def test_get_missing(self, reservation_store):
        with pytest.raises(ReservationNotFoundError):
            reservation_store.get("nope")

    def test_overlap_rejected(self, reservation_store, make_reservation, neighbour, at):
        reservation_store.create(make_reservation(at(2, 10), at(2, 11)))
        with pytest.raises(ReservationConflictError):
            reservation_store.create(make_reservation(at(2, 10, 30), at(2, 11, 30), user_id=neighbour.user_id))

    def test_touching_allowed(self, reservation_store, make_reservation, at):
        reservation_store.create(make_reservation(at(2, 10), at(2, 11)))
        reservation_store.create(make_reservation(at(2, 11), at(2, 12)))
        assert len(reservation_store.list_for_amenity("jacuzzi-1")) == 2

    def test_cancelled_does_not_conflict(self, reservation_store, make_reservation, at):
        reservation_store.create(make_reservation(at(2, 10), at(2, 11), status=ReservationStatus.CANCELLED))
        reservation_store.create(make_reservation(at(2, 10), at(2, 11)))

    def test_duplicate_id_rejected(self, reservation_store, make_reservation, at):
        reservation_store.create(make_reservation(at(2, 10), at(2, 11), id="r1"))
        with pytest.raises(ReservationConflictError):
            reservation_store.create(make_reservation(at(3, 10), at(3, 11), id="r1"))

    def test_save_ignores_self(self, reservation_store, make_reservation, at):
        original = reservation_store.create(make_reservation(at(2, 10), at(2, 11)))
        moved = original.model_copy(update={"start_time": at(2, 10, 30), "end_time": at(2, 11, 30)})
        assert reservation_store.save(moved).start_time == at(2, 10, 30)

    def test_save_missing(self, reservation_store, make_reservation, at):
        with pytest.raises(ReservationNotFoundError):
            reservation_store.save(make_reservation(at(2, 10), at(2, 11)))

    def test_list_filters(self, make_reservation, neighbour, at):
        first = make_reservation(at(2, 14), at(2, 15))
        second = make_reservation(at(2, 8), at(2, 9), user_id=neighbour.user_id, status=ReservationStatus.PENDING)
        other_day = make_reservation(at(3, 8), at(3, 9))
        store = InMemoryReservationStore([first, second, other_day])

        assert store.list_for_amenity("jacuzzi-1", start=at(2, 0), end=at(3, 0)) == [second, first]
        assert store.list_for_amenity("jacuzzi-1", statuses=[ReservationStatus.PENDING]) == [second]
        assert store.list_for_user(neighbour.user_id) == [second]


@pytest.mark.unit
class TestBookingService:
    """Tests for BookingService."""

    @pytest.fixture
    def service(self, amenity_provider, reservation_store, normalizer, settings):
        return BookingService(amenity_provider, reservation_store, normalizer=normalizer, settings=settings)

    @pytest.fixture
    def book(self, service, resident, at):
        def _book(start, end, actor=None, amenity_id="jacuzzi-1", **kwargs):
            actor = actor or resident
            candidate = BookingCandidate(
                amenity_id=amenity_id,
                user_id=actor.user_id,
                start_time=start,
                end_time=end,
                **kwargs,
            )
            return service.submit(candidate, actor)
        return _book

    def test_first_booking_auto_approved(self, book, at):
        result = book(at(2, 10), at(2, 11))

        assert result.ok
        assert result.reservation.status == ReservationStatus.APPROVED
        assert result.policy.reason == PolicyReason.AUTO_APPROVED

    def test_second_same_day_pending(self, book, at):
        book(at(2, 10), at(2, 11))
        result = book(at(2, 15), at(2, 16))

        assert result.reservation.status == ReservationStatus.PENDING
        assert result.policy.reason == PolicyReason.SAME_DAY_DUPLICATE

    def test_invalid_not_stored(self, book, reservation_store, at):
        result = book(at(2, 11), at(2, 10))

        assert not result.ok
        assert result.validation.kind == ValidationErrorKind.INVERTED_INTERVAL
        assert reservation_store.list_for_amenity("jacuzzi-1") == []

    def test_slot_taken_at_commit(self, book, neighbour, at):
        """The store's conflict check is reported as a retryable outcome."""
        book(at(2, 10), at(2, 11))
        result = book(at(2, 10, 30), at(2, 11, 30), actor=neighbour)

        assert result.conflict is True
        assert result.message == SLOT_TAKEN_MESSAGE
        assert not result.ok

    def test_special_requests_kept(self, book, at):
        result = book(at(2, 10), at(2, 14), amenity_id="lounge-1", visitor_count=10, grill_usage=True, notes="BBQ")

        requests = result.reservation.special_requests
        assert (requests.visitor_count, requests.grill_usage, requests.notes) == (10, True, "BBQ")

    def test_unknown_amenity(self, book, at):
        with pytest.raises(AmenityNotFoundError):
            book(at(2, 10), at(2, 11), amenity_id="sauna")

    def test_available_slots_reflect_store(self, service, book, neighbour, at):
        book(at(2, 10), at(2, 11))
        slots = service.available_slots("jacuzzi-1", date(2025, 1, 2), 60, neighbour)
        starts = [slot.start_time for slot in slots]

        assert at(2, 10, 30) not in starts
        assert at(2, 11) in starts

    def test_available_slots_for_edit(self, service, book, resident, at):
        booked = book(at(2, 10), at(2, 11)).reservation
        slots = service.available_slots("jacuzzi-1", date(2025, 1, 2), 60, resident, editing_id=booked.id)
        assert [slot.start_time for slot in slots if slot.is_current] == [at(2, 10)]

    def test_admin_approves_pending(self, service, book, admin, reservation_store, at):
        book(at(2, 10), at(2, 11))
        pending = book(at(2, 15), at(2, 16)).reservation

        updated = service.transition(pending.id, LifecycleAction.APPROVE, admin)

        assert updated.status == ReservationStatus.APPROVED
        assert reservation_store.get(pending.id).status == ReservationStatus.APPROVED

    def test_rejected_transition_not_saved(self, service, book, resident, reservation_store, at):
        pending_id = book(at(2, 10), at(2, 11)).reservation.id
        outcome = service.transition(pending_id, LifecycleAction.DENY, resident, reason="No")

        assert isinstance(outcome, TransitionError)
        assert reservation_store.get(pending_id).status == ReservationStatus.APPROVED

    def test_cancel_frees_slot(self, service, book, resident, neighbour, at):
        booked = book(at(2, 10), at(2, 11)).reservation
        service.transition(booked.id, LifecycleAction.CANCEL, resident)

        assert book(at(2, 10), at(2, 11), actor=neighbour).ok

    def test_edit_moves_booking(self, service, book, resident, at):
        booked = book(at(2, 10), at(2, 11)).reservation
        result = service.edit(booked.id, ReservationChanges(start_time=at(2, 10, 30), end_time=at(2, 11, 30)), resident)

        assert result.ok
        assert result.reservation.start_time == at(2, 10, 30)
        assert result.reservation.status == ReservationStatus.APPROVED
        assert [change.field for change in result.changes] == ["time"]

    def test_edit_into_taken_slot(self, service, book, resident, neighbour, at):
        book(at(2, 12), at(2, 13), actor=neighbour)
        booked = book(at(2, 10), at(2, 11)).reservation

        result = service.edit(booked.id, ReservationChanges(start_time=at(2, 12), end_time=at(2, 13)), resident)

        assert result.conflict is True
        assert service.store.get(booked.id).start_time == at(2, 10)

    def test_edit_revalidated(self, service, book, resident, at):
        booked = book(at(2, 10), at(2, 11)).reservation
        result = service.edit(booked.id, ReservationChanges(end_time=at(2, 15)), resident)
        assert result.validation.kind == ValidationErrorKind.DURATION_TOO_LONG

    def test_admin_edit_of_resident_booking(self, service, book, admin, at):
        """Administrators edit on behalf of the owner."""
        booked = book(at(2, 10), at(2, 11)).reservation
        result = service.edit(booked.id, ReservationChanges(notes="Filter change at 11"), admin)

        assert result.ok
        assert [change.field for change in result.changes] == ["notes"]

    def test_edit_by_other_resident(self, service, book, neighbour, at):
        booked = book(at(2, 10), at(2, 11)).reservation
        result = service.edit(booked.id, ReservationChanges(notes="hi"), neighbour)
        assert result.error.kind == TransitionErrorKind.NOT_PERMITTED

    def test_admin_relabelled_jacuzzi_not_stored(self, service, admin, reservation_store, at):
        candidate = BookingCandidate(
            amenity_id="jacuzzi-1",
            amenity_type=AmenityType.MAINTENANCE,
            user_id=admin.user_id,
            start_time=at(2, 10),
            end_time=at(2, 11),
        )
        result = service.submit(candidate, admin)

        assert not result.ok
        assert result.validation.kind == ValidationErrorKind.AMENITY_MISMATCH
        assert reservation_store.list_for_amenity("jacuzzi-1") == []

    def test_relabelled_lounge_keeps_lead_time(self, book, reservation_store, at):
        result = book(at(1, 12), at(1, 13), amenity_id="lounge-1", amenity_type=AmenityType.JACUZZI)

        assert not result.ok
        assert reservation_store.list_for_amenity("lounge-1") == []

    def test_booking_under_another_user_rejected(self, service, book, resident, reservation_store, at):
        """A second same-day booking cannot dodge review by naming another user."""
        book(at(2, 10), at(2, 11))
        candidate = BookingCandidate(
            amenity_id="jacuzzi-1",
            user_id="someone-else",
            start_time=at(2, 15),
            end_time=at(2, 16),
        )
        result = service.submit(candidate, resident)

        assert not result.ok
        assert result.validation.kind == ValidationErrorKind.USER_MISMATCH
        assert reservation_store.list_for_user("someone-else") == []


@pytest.mark.unit
class TestConfigureAmenity:
    """Tests for administrator amenity configuration."""

    @pytest.fixture
    def service(self, amenity_provider, reservation_store, normalizer, settings):
        return BookingService(amenity_provider, reservation_store, normalizer=normalizer, settings=settings)

    def test_admin_adds_amenity(self, service, admin):
        tub = Amenity(id="tub-1", name="Cold Tub", type=AmenityType.COLD_TUB, capacity=2)
        report = service.configure_amenity(tub, admin)

        assert report.is_valid
        assert service.amenities.get_amenity("tub-1") == tub

    def test_invalid_config_not_stored(self, service, admin):
        lounge = Amenity(id="lounge-2", name="Rooftop Lounge", type=AmenityType.LOUNGE, capacity=20)
        report = service.configure_amenity(lounge, admin)

        assert not report.is_valid
        with pytest.raises(AmenityNotFoundError):
            service.amenities.get_amenity("lounge-2")

    def test_warnings_do_not_block(self, service, admin):
        lounge = Amenity(
            id="lounge-2", name="Rooftop Lounge", type=AmenityType.LOUNGE, capacity=40, requires_approval=True
        )
        report = service.configure_amenity(lounge, admin)

        assert report.is_valid
        assert report.warnings
        assert service.amenities.get_amenity("lounge-2") == lounge

    def test_resident_cannot_configure(self, service, resident):
        tub = Amenity(id="tub-1", name="Cold Tub", type=AmenityType.COLD_TUB)
        report = service.configure_amenity(tub, resident)

        assert not report.is_valid
        with pytest.raises(AmenityNotFoundError):
            service.amenities.get_amenity("tub-1")
