from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from ..config import settings
from ..exceptions import TransitionError, ValidationError
from ..models import BookingStatus
from ..schemas import Booking, BookingRequest, NotificationResult, Room, TransitionResult
from ..templating import templates
from . import pricing
from .mail import Notifier
from .store import BookingStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

ACCEPTED_SUBJECT = "Your booking is approved!"
REJECTED_SUBJECT = "Your booking request"


def validate_request(request: BookingRequest) -> Optional[str]:
    """Return the first problem with a guest request, or None if it is acceptable."""
    if not request.check_in:
        return "Please select check-in date."
    if not request.check_out:
        return "Please select check-out date."
    if request.check_out <= request.check_in:
        return "Check-out must be after check-in."
    if not request.guest_name.strip():
        return "Please enter your name."
    if not request.guest_email.strip():
        return "Please enter your email."
    if not EMAIL_RE.match(request.guest_email.strip()):
        return "Please enter a valid email address."
    if not request.guest_phone.strip():
        return "Please enter your phone number."
    if not request.room_ids:
        return "Please select at least one room."
    if pricing.nights(request.check_in, request.check_out) <= 0:
        return "Invalid stay duration."
    return None


class BookingLifecycle:
    """
    Drives bookings from guest request to the admin decision.

    It does not consult the availability engine: the admin looks at the
    conflicts first and then decides to accept, shift the check-in or reject.
    """

    def __init__(self, store: BookingStore, notifier: Notifier,
                 strict_pricing: Optional[bool] = None,
                 hotel_name: Optional[str] = None,
                 currency: Optional[str] = None,
                 clock: Callable[[], datetime] = datetime.utcnow):
        self.store = store
        self.notifier = notifier
        self.strict_pricing = settings.PRICING_STRICT if strict_pricing is None else strict_pricing
        self.hotel_name = hotel_name or settings.HOTEL_NAME
        self.currency = currency or settings.CURRENCY
        self.clock = clock

    async def _load_rooms(self, room_ids: List[str]) -> Dict[str, Optional[Room]]:
        return {room_id: await self.store.get_room(room_id) for room_id in room_ids}

    async def create(self, request: BookingRequest) -> Booking:
        """Validate a guest request and store it as a pending booking."""
        error = validate_request(request)
        if error:
            raise ValidationError(error)

        room_ids = list(dict.fromkeys(request.room_ids))
        rooms = await self._load_rooms(room_ids)
        total_price = pricing.total(room_ids, rooms.get, request.check_in, request.check_out, strict=self.strict_pricing)

        booking = Booking(
            room_ids=room_ids,
            guest_name=request.guest_name.strip(),
            guest_phone=request.guest_phone.strip(),
            guest_email=request.guest_email.strip(),
            check_in=request.check_in,
            check_out=request.check_out,
            status=BookingStatus.PENDING,
            total_price=total_price,
            created_at=self.clock(),
        )
        stored = await self.store.put_booking(booking)
        logger.info("Booking %s created for %s (%s nights, total %s)", stored.id, stored.guest_email,
                    pricing.nights(stored.check_in, stored.check_out), stored.total_price)
        return stored

    async def accept(self, booking: Booking, proposed_check_in: Optional[date] = None) -> TransitionResult:
        """Accept a pending booking, optionally moving its check-in, then email the guest."""
        self._ensure_pending(booking, BookingStatus.ACCEPTED)

        check_in = booking.check_in
        if proposed_check_in is not None:
            if pricing.nights(proposed_check_in, booking.check_out) <= 0:
                raise ValidationError("Proposed check-in must be before check-out.")
            check_in = proposed_check_in

        rooms = await self._load_rooms(booking.room_ids)
        total_price = pricing.total(booking.room_ids, rooms.get, check_in, booking.check_out, strict=self.strict_pricing)

        updated = booking.model_copy(update={
            "status": BookingStatus.ACCEPTED,
            "check_in": check_in,
            "total_price": total_price,
            "updated_at": self.clock(),
        })
        stored = await self.store.put_booking(updated, expected_version=booking.version)
        if check_in != booking.check_in:
            logger.info("Booking %s accepted with check-in moved from %s to %s", stored.id, booking.check_in, check_in)
        else:
            logger.info("Booking %s accepted", stored.id)

        body = templates.get_template("emails/booking_accepted.txt").render({
            "booking": stored,
            "room_names": [rooms[rid].name if rooms.get(rid) else rid for rid in stored.room_ids],
            "hotel_name": self.hotel_name,
            "total": total_price,
            "currency": self.currency,
        })
        notification = await self._notify(stored, BookingStatus.ACCEPTED, ACCEPTED_SUBJECT, body)
        return TransitionResult(booking=stored, notification=notification)

    async def reject(self, booking: Booking, reason: str) -> TransitionResult:
        """Reject a pending booking and email the guest the given reason."""
        self._ensure_pending(booking, BookingStatus.REJECTED)

        updated = booking.model_copy(update={
            "status": BookingStatus.REJECTED,
            "updated_at": self.clock(),
        })
        stored = await self.store.put_booking(updated, expected_version=booking.version)
        logger.info("Booking %s rejected", stored.id)

        body = templates.get_template("emails/booking_rejected.txt").render({
            "booking": stored,
            "reason": reason,
            "hotel_name": self.hotel_name,
        })
        notification = await self._notify(stored, BookingStatus.REJECTED, REJECTED_SUBJECT, body)
        return TransitionResult(booking=stored, notification=notification)

    @staticmethod
    def _ensure_pending(booking: Booking, target: BookingStatus) -> None:
        if booking.status != BookingStatus.PENDING:
            raise TransitionError(
                f"Booking {booking.id} is already {booking.status.value}; cannot mark it {target.value}."
            )

    async def _notify(self, booking: Booking, status: BookingStatus, subject: str, body: str) -> NotificationResult:
        # The status change is already stored; a failed email only produces a warning
        try:
            result = await self.notifier.send_status_email(booking, status, subject, body)
        except Exception as e:
            logger.exception("Notifier raised while emailing booking %s", booking.id)
            result = NotificationResult(success=False, error=str(e))
        if not result.success:
            logger.warning("Booking %s %s, but email failed: %s", booking.id, status.value, result.error)
        return result
