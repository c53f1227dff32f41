from .room import RoomRow
from .booking import BookingRow, BookingStatus
