from datetime import date, datetime

import pytest

from conftest import make_request, run

from staydesk.exceptions import ConflictError, StorageError, TransitionError, ValidationError
from staydesk.models import BookingStatus
from staydesk.services.lifecycle import BookingLifecycle
from staydesk.services.mail import RecordingNotifier
from staydesk.services.store import MemoryBookingStore


class BrokenWritesStore(MemoryBookingStore):
    """Accepts the first write (the pending booking), then refuses."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.writes = 0

    async def put_booking(self, booking, expected_version=None):
        self.writes += 1
        if self.writes > 1:
            raise StorageError("disk full")
        return await super().put_booking(booking, expected_version)


class RaisingNotifier:

    async def send_status_email(self, booking, status, subject, body):
        raise RuntimeError("smtp exploded")


# ============================================================================
# create()
# ============================================================================

class TestCreate:

    def test_prices_and_stores_pending_booking(self, lifecycle, store):
        booking = run(lifecycle.create(make_request()))

        assert booking.status == BookingStatus.PENDING
        assert booking.total_price == 40000
        assert booking.created_at == datetime(2024, 5, 20, 9, 30)
        assert booking.updated_at is None
        assert booking.version == 1
        assert run(store.get_booking(booking.id)) == booking

    def test_multiple_rooms_and_duplicates(self, lifecycle):
        booking = run(lifecycle.create(make_request(room_ids=["r1", "r2", "r1"])))
        assert booking.room_ids == ["r1", "r2"]
        assert booking.total_price == (20000 + 15000) * 2

    def test_guest_fields_are_trimmed(self, lifecycle):
        booking = run(lifecycle.create(make_request(guest_name="  Ada  ", guest_email=" ada@example.com ")))
        assert booking.guest_name == "Ada"
        assert booking.guest_email == "ada@example.com"

    @pytest.mark.parametrize("overrides,message", [
        ({"check_in": None}, "check-in"),
        ({"check_out": None}, "check-out"),
        ({"check_out": date(2024, 6, 1)}, "after check-in"),
        ({"check_out": date(2024, 5, 30)}, "after check-in"),
        ({"guest_name": "   "}, "name"),
        ({"guest_email": ""}, "email"),
        ({"guest_email": "ada.example.com"}, "valid email"),
        ({"guest_email": "ada@example"}, "valid email"),
        ({"guest_email": "ada @example.com"}, "valid email"),
        ({"guest_phone": ""}, "phone"),
        ({"room_ids": []}, "at least one room"),
    ])
    def test_invalid_requests_are_not_stored(self, lifecycle, store, overrides, message):
        with pytest.raises(ValidationError, match=message):
            run(lifecycle.create(make_request(**overrides)))
        assert run(store.list_bookings()) == []

    def test_unknown_room_is_rejected_when_strict(self, lifecycle, store):
        with pytest.raises(ValidationError, match="Unknown room"):
            run(lifecycle.create(make_request(room_ids=["r1", "gone"])))
        assert run(store.list_bookings()) == []

    def test_unknown_room_priced_at_zero_when_lenient(self, store, notifier):
        lenient = BookingLifecycle(store, notifier, strict_pricing=False)
        booking = run(lenient.create(make_request(room_ids=["r1", "gone"])))
        assert booking.total_price == 40000

    def test_create_does_not_notify(self, lifecycle, notifier):
        run(lifecycle.create(make_request()))
        assert notifier.sent == []


# ============================================================================
# accept()
# ============================================================================

class TestAccept:

    def test_accept_keeps_dates_and_notifies_once(self, lifecycle, store, notifier):
        pending = run(lifecycle.create(make_request()))

        result = run(lifecycle.accept(pending))

        assert result.booking.status == BookingStatus.ACCEPTED
        assert result.booking.check_in == date(2024, 6, 1)
        assert result.booking.updated_at == datetime(2024, 5, 20, 9, 30)
        assert result.notification.success is True
        assert result.warning is None
        assert run(store.get_booking(pending.id)).status == BookingStatus.ACCEPTED

        assert len(notifier.sent) == 1
        email = notifier.sent[0]
        assert email.status == BookingStatus.ACCEPTED
        assert email.subject == "Your booking is approved!"
        assert "Garden Room" in email.body
        assert "Test Hotel" in email.body
        assert "from 2024-06-01 to 2024-06-03" in email.body
        assert "$40,000" in email.body

    def test_proposed_check_in_shifts_stay_and_reprices(self, lifecycle, notifier):
        pending = run(lifecycle.create(make_request(check_in=date(2024, 6, 1), check_out=date(2024, 6, 5))))

        result = run(lifecycle.accept(pending, proposed_check_in=date(2024, 6, 3)))

        assert result.booking.check_in == date(2024, 6, 3)
        assert result.booking.check_out == date(2024, 6, 5)
        assert result.booking.total_price == 40000
        assert "from 2024-06-03 to 2024-06-05" in notifier.sent[0].body

    def test_proposed_check_in_must_precede_check_out(self, lifecycle, store, notifier):
        pending = run(lifecycle.create(make_request()))
        with pytest.raises(ValidationError):
            run(lifecycle.accept(pending, proposed_check_in=date(2024, 6, 3)))
        assert run(store.get_booking(pending.id)).status == BookingStatus.PENDING
        assert notifier.sent == []

    def test_failed_email_does_not_revert_status(self, store):
        notifier = RecordingNotifier(fail_with="Mailgun is not configured")
        lifecycle = BookingLifecycle(store, notifier)
        pending = run(lifecycle.create(make_request()))

        result = run(lifecycle.accept(pending))

        assert result.notification.success is False
        assert "Mailgun is not configured" in result.warning
        assert run(store.get_booking(pending.id)).status == BookingStatus.ACCEPTED

    def test_raising_notifier_becomes_failed_result(self, store):
        lifecycle = BookingLifecycle(store, RaisingNotifier())
        pending = run(lifecycle.create(make_request()))

        result = run(lifecycle.accept(pending))

        assert result.notification.success is False
        assert "smtp exploded" in result.notification.error
        assert run(store.get_booking(pending.id)).status == BookingStatus.ACCEPTED

    def test_storage_failure_propagates_without_email(self, rooms, notifier):
        store = BrokenWritesStore(rooms=rooms)
        lifecycle = BookingLifecycle(store, notifier)
        pending = run(lifecycle.create(make_request()))

        with pytest.raises(StorageError, match="disk full"):
            run(lifecycle.accept(pending))
        assert notifier.sent == []

    def test_stale_booking_is_refused(self, lifecycle, notifier):
        pending = run(lifecycle.create(make_request()))
        run(lifecycle.reject(pending, "changed our mind"))

        # Second admin still holds the version read before the rejection
        with pytest.raises(ConflictError):
            run(lifecycle.accept(pending))
        assert len(notifier.sent) == 1

    def test_terminal_booking_cannot_be_accepted(self, lifecycle):
        pending = run(lifecycle.create(make_request()))
        rejected = run(lifecycle.reject(pending, "no")).booking

        with pytest.raises(TransitionError, match="rejected"):
            run(lifecycle.accept(rejected))

    def test_accept_does_not_check_conflicts(self, lifecycle):
        first = run(lifecycle.create(make_request()))
        second = run(lifecycle.create(make_request(guest_email="bob@example.com")))
        run(lifecycle.accept(first))

        result = run(lifecycle.accept(second))
        assert result.booking.status == BookingStatus.ACCEPTED


# ============================================================================
# reject()
# ============================================================================

class TestReject:

    def test_reject_embeds_reason(self, lifecycle, store, notifier):
        pending = run(lifecycle.create(make_request()))

        result = run(lifecycle.reject(pending, "fully booked"))

        assert result.booking.status == BookingStatus.REJECTED
        assert result.booking.check_in == pending.check_in
        assert run(store.get_booking(pending.id)).status == BookingStatus.REJECTED
        assert len(notifier.sent) == 1
        assert notifier.sent[0].status == BookingStatus.REJECTED
        assert notifier.sent[0].subject == "Your booking request"
        assert "fully booked" in notifier.sent[0].body
        assert "Dear Ada Guest" in notifier.sent[0].body

    def test_reason_is_not_html_escaped(self, lifecycle, notifier):
        pending = run(lifecycle.create(make_request()))
        run(lifecycle.reject(pending, "O'Brien & co. took the floor"))
        assert "O'Brien & co. took the floor" in notifier.sent[0].body

    def test_terminal_booking_cannot_be_rejected(self, lifecycle):
        pending = run(lifecycle.create(make_request()))
        accepted = run(lifecycle.accept(pending)).booking

        with pytest.raises(TransitionError, match="accepted"):
            run(lifecycle.reject(accepted, "too late"))
