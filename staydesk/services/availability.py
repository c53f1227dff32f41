from datetime import date
from typing import Iterable, List

from ..models import BookingStatus
from ..schemas import Booking, OccupiedRange


def overlaps(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Return True if [start, end) overlaps [other_start, other_end)."""
    return start < other_end and end > other_start


def conflicts(candidate: Booking, all_bookings: Iterable[Booking]) -> List[Booking]:
    """Accepted bookings that share a room with ``candidate`` and overlap its stay.

    Same-day turnover is not a conflict. Order of the result is not meaningful.
    """
    rooms = set(candidate.room_ids)
    found = []
    for b in all_bookings:
        if b.id == candidate.id or b.status != BookingStatus.ACCEPTED:
            continue
        if rooms.isdisjoint(b.room_ids):
            continue
        if overlaps(candidate.check_in, candidate.check_out, b.check_in, b.check_out):
            found.append(b)
    return found


def is_available(candidate: Booking, all_bookings: Iterable[Booking]) -> bool:
    return not conflicts(candidate, all_bookings)


def occupied_ranges(room_id: str, all_bookings: Iterable[Booking], start: date, end: date) -> List[OccupiedRange]:
    """Accepted stays of one room intersecting [start, end), sorted by check-in.

    Guest details are left out; this feeds the public calendar.
    """
    ranges = [
        OccupiedRange(start=b.check_in, end=b.check_out)
        for b in all_bookings
        if b.status == BookingStatus.ACCEPTED
        and room_id in b.room_ids
        and overlaps(b.check_in, b.check_out, start, end)
    ]
    return sorted(ranges, key=lambda r: r.start)
