import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .models import BookingStatus


def generate_id() -> str:
    return uuid.uuid4().hex


# ==== Rooms ====

class RoomIn(BaseModel):
    name: str
    price: int = Field(..., ge=0)
    description: str = ""
    images: List[str] = Field(default_factory=list)

class Room(RoomIn):
    id: str = Field(default_factory=generate_id)

    class Config:
        from_attributes = True

# ==== Bookings ====

class BookingRequest(BaseModel):
    """Guest-submitted stay request. Every field is optional so that missing
    values are reported by the lifecycle validation rather than by parsing."""
    room_ids: List[str] = Field(default_factory=list)
    guest_name: str = ""
    guest_phone: str = ""
    guest_email: str = ""
    check_in: Optional[date] = None
    check_out: Optional[date] = None

class Booking(BaseModel):
    id: str = Field(default_factory=generate_id)
    room_ids: List[str]
    guest_name: str
    guest_phone: str
    guest_email: str
    check_in: date
    check_out: date
    status: BookingStatus = BookingStatus.PENDING
    total_price: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    # 0 means "never stored"; stores bump it on every write
    version: int = 0

    @model_validator(mode="after")
    def check_stay(self):
        if not self.room_ids:
            raise ValueError("A booking needs at least one room")
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self

    class Config:
        from_attributes = True

class AcceptIn(BaseModel):
    proposed_check_in: Optional[date] = None

class RejectIn(BaseModel):
    reason: str = ""

# ==== Results ====

class NotificationResult(BaseModel):
    success: bool
    error: Optional[str] = None

class TransitionResult(BaseModel):
    booking: Booking
    notification: NotificationResult

    @property
    def warning(self) -> Optional[str]:
        if self.notification.success:
            return None
        return f"Booking {self.booking.status.value}, but email failed: {self.notification.error}"

class OccupiedRange(BaseModel):
    start: date
    end: date
    title: str = "Not available"

# ==== Admin ====

class LoginIn(BaseModel):
    username: str
    password: str

class TokenOut(BaseModel):
    token: str
    expires_in: int

class TransitionOut(BaseModel):
    booking: Booking
    email_sent: bool
    warning: Optional[str] = None
