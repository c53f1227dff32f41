import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, runtime_checkable

import requests
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..exceptions import NotificationError
from ..models import BookingStatus
from ..schemas import Booking, NotificationResult

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Delivers booking status emails. Implementations never raise."""

    async def send_status_email(self, booking: Booking, status: BookingStatus, subject: str, body: str) -> NotificationResult: ...


class MailgunNotifier:
    """Sends booking status emails to the guest using the Mailgun API."""

    def __init__(self, api_key: Optional[str] = None, domain: Optional[str] = None, sender: Optional[str] = None, base_url: Optional[str] = None, timeout: int = 10):
        self.api_key = settings.MAILGUN_API_KEY if api_key is None else api_key
        self.domain = settings.MAILGUN_DOMAIN if domain is None else domain
        self.sender = sender or settings.MAIL_FROM
        self.base_url = (base_url or settings.MAILGUN_BASE_URL).rstrip("/")
        self.timeout = timeout

    async def send_status_email(self, booking: Booking, status: BookingStatus, subject: str, body: str) -> NotificationResult:
        try:
            await run_in_threadpool(self._deliver, booking, status, subject, body)
        except NotificationError as e:
            logger.error(f"Failed to send {status.value} email for booking {booking.id} to {booking.guest_email}: {e}")
            return NotificationResult(success=False, error=str(e))
        return NotificationResult(success=True)

    def _deliver(self, booking: Booking, status: BookingStatus, subject: str, body: str) -> None:
        if not self.api_key or not self.domain:
            raise NotificationError("Mailgun is not configured (missing MAILGUN_API_KEY or MAILGUN_DOMAIN).")

        mailgun_url = f"{self.base_url}/{self.domain}/messages"
        auth = ("api", self.api_key)
        data = {
            "from": f"{settings.HOTEL_NAME} <{self.sender}>",
            "to": [booking.guest_email],
            "subject": subject,
            "text": body,
            "v:booking_id": booking.id,
            "v:status": status.value,
        }

        try:
            response = requests.post(mailgun_url, auth=auth, data=data, timeout=self.timeout)
            response.raise_for_status()  # Raise an exception for bad status codes (4xx or 5xx)
        except requests.exceptions.RequestException as e:
            raise NotificationError(str(e)) from e
        logger.info(f"Booking {status.value} email sent to {booking.guest_email} via Mailgun.")


@dataclass
class SentEmail:
    booking: Booking
    status: BookingStatus
    subject: str
    body: str


@dataclass
class RecordingNotifier:
    """Keeps every attempted email in memory; can be told to report failure."""

    fail_with: Optional[str] = None
    sent: List[SentEmail] = field(default_factory=list)

    async def send_status_email(self, booking: Booking, status: BookingStatus, subject: str, body: str) -> NotificationResult:
        self.sent.append(SentEmail(booking=booking, status=status, subject=subject, body=body))
        if self.fail_with:
            return NotificationResult(success=False, error=self.fail_with)
        return NotificationResult(success=True)
