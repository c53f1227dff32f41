import logging
from datetime import date
from typing import Callable, Iterable, Optional

from ..exceptions import ValidationError
from ..schemas import Room

logger = logging.getLogger(__name__)

RoomLookup = Callable[[str], Optional[Room]]


def nights(check_in: date | None, check_out: date | None) -> int:
    """Whole days between check-in and check-out.

    Returns 0 when a date is missing or check-out is not after check-in;
    callers treat 0 as an invalid stay.
    """
    if not check_in or not check_out:
        return 0
    diff = (check_out - check_in).days
    return diff if diff > 0 else 0


def total(room_ids: Iterable[str], lookup_room: RoomLookup, check_in: date | None, check_out: date | None, strict: bool = True) -> int:
    """Sum of price x nights over the given rooms.

    With ``strict`` an id the catalog cannot resolve raises ValidationError.
    Otherwise the room counts as zero and a warning is logged.
    """
    n = nights(check_in, check_out)
    amount = 0
    for room_id in room_ids:
        room = lookup_room(room_id)
        if room is None:
            if strict:
                raise ValidationError(f"Unknown room '{room_id}'.")
            logger.warning("Room %s not found in catalog; pricing it at 0", room_id)
            continue
        amount += room.price * n
    return amount
