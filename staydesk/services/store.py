from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, runtime_checkable

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from ..exceptions import ConflictError, StorageError
from ..models import BookingRow, RoomRow
from ..schemas import Booking, Room

logger = logging.getLogger(__name__)

_ROOM_FIELDS = ("name", "price", "description", "images")
_BOOKING_FIELDS = (
    "room_ids", "guest_name", "guest_phone", "guest_email", "check_in",
    "check_out", "status", "total_price", "created_at", "updated_at",
)


@runtime_checkable
class BookingStore(Protocol):
    """Persistence for rooms and bookings.

    Reads return an empty list or None for missing data. Writes raise
    StorageError, and ConflictError when ``expected_version`` does not match.
    """

    # rooms
    async def list_rooms(self) -> List[Room]: ...
    async def get_room(self, room_id: str) -> Optional[Room]: ...
    async def put_room(self, room: Room) -> Room: ...
    async def delete_room(self, room_id: str) -> bool: ...

    # bookings
    async def list_bookings(self) -> List[Booking]: ...
    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...
    async def put_booking(self, booking: Booking, expected_version: Optional[int] = None) -> Booking: ...
    async def delete_booking(self, booking_id: str) -> bool: ...


class MemoryBookingStore:
    """Dictionary-backed store; records are copied in and out."""

    def __init__(self, rooms: Optional[List[Room]] = None, bookings: Optional[List[Booking]] = None):
        self._rooms: Dict[str, Room] = {r.id: r.model_copy(deep=True) for r in rooms or []}
        self._bookings: Dict[str, Booking] = {b.id: b.model_copy(deep=True) for b in bookings or []}

    async def list_rooms(self) -> List[Room]:
        return [r.model_copy(deep=True) for r in self._rooms.values()]

    async def get_room(self, room_id: str) -> Optional[Room]:
        room = self._rooms.get(room_id)
        return room.model_copy(deep=True) if room else None

    async def put_room(self, room: Room) -> Room:
        self._rooms[room.id] = room.model_copy(deep=True)
        return room.model_copy(deep=True)

    async def delete_room(self, room_id: str) -> bool:
        return self._rooms.pop(room_id, None) is not None

    async def list_bookings(self) -> List[Booking]:
        return [b.model_copy(deep=True) for b in self._bookings.values()]

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def put_booking(self, booking: Booking, expected_version: Optional[int] = None) -> Booking:
        current = self._bookings.get(booking.id)
        current_version = current.version if current else 0
        if expected_version is not None and current_version != expected_version:
            raise ConflictError(
                f"Booking {booking.id} changed since it was read "
                f"(expected version {expected_version}, found {current_version})."
            )
        stored = booking.model_copy(update={"version": current_version + 1}, deep=True)
        self._bookings[booking.id] = stored
        return stored.model_copy(deep=True)

    async def delete_booking(self, booking_id: str) -> bool:
        return self._bookings.pop(booking_id, None) is not None


class SqlBookingStore:
    """SQLAlchemy-backed store. Blocking session work runs in the threadpool."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    async def _run(self, fn, *args):
        return await run_in_threadpool(self._guarded, fn, *args)

    def _guarded(self, fn, *args):
        with self._session_factory() as db:
            try:
                return fn(db, *args)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Database error in {fn.__name__}: {e}")
                raise StorageError(f"Storage unavailable: {e}") from e

    # ---------- Rooms ----------

    async def list_rooms(self) -> List[Room]:
        return await self._run(self._list_rooms)

    async def get_room(self, room_id: str) -> Optional[Room]:
        return await self._run(self._get_room, room_id)

    async def put_room(self, room: Room) -> Room:
        return await self._run(self._put_room, room)

    async def delete_room(self, room_id: str) -> bool:
        return await self._run(self._delete, RoomRow, room_id)

    @staticmethod
    def _list_rooms(db: Session) -> List[Room]:
        rows = db.scalars(select(RoomRow).order_by(RoomRow.name.asc())).all()
        return [Room.model_validate(r) for r in rows]

    @staticmethod
    def _get_room(db: Session, room_id: str) -> Optional[Room]:
        row = db.get(RoomRow, room_id)
        return Room.model_validate(row) if row else None

    @staticmethod
    def _put_room(db: Session, room: Room) -> Room:
        row = db.get(RoomRow, room.id)
        if row is None:
            row = RoomRow(id=room.id)
            db.add(row)
        for field in _ROOM_FIELDS:
            setattr(row, field, getattr(room, field))
        db.commit()
        return Room.model_validate(row)

    # ---------- Bookings ----------

    async def list_bookings(self) -> List[Booking]:
        return await self._run(self._list_bookings)

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return await self._run(self._get_booking, booking_id)

    async def put_booking(self, booking: Booking, expected_version: Optional[int] = None) -> Booking:
        if expected_version is None:
            return await self._run(self._upsert_booking, booking)
        return await self._run(self._swap_booking, booking, expected_version)

    async def delete_booking(self, booking_id: str) -> bool:
        return await self._run(self._delete, BookingRow, booking_id)

    @staticmethod
    def _list_bookings(db: Session) -> List[Booking]:
        rows = db.scalars(select(BookingRow).order_by(BookingRow.created_at.desc())).all()
        return [Booking.model_validate(r) for r in rows]

    @staticmethod
    def _get_booking(db: Session, booking_id: str) -> Optional[Booking]:
        row = db.get(BookingRow, booking_id)
        return Booking.model_validate(row) if row else None

    @staticmethod
    def _booking_values(booking: Booking) -> dict:
        values = {field: getattr(booking, field) for field in _BOOKING_FIELDS}
        values["room_ids"] = list(booking.room_ids)
        return values

    @classmethod
    def _upsert_booking(cls, db: Session, booking: Booking) -> Booking:
        row = db.get(BookingRow, booking.id)
        if row is None:
            row = BookingRow(id=booking.id, version=0)
            db.add(row)
        for field, value in cls._booking_values(booking).items():
            setattr(row, field, value)
        row.version = (row.version or 0) + 1
        db.commit()
        return Booking.model_validate(row)

    @classmethod
    def _swap_booking(cls, db: Session, booking: Booking, expected_version: int) -> Booking:
        # Single conditional UPDATE so a concurrent writer cannot slip in between
        res = db.execute(
            update(BookingRow)
            .where(BookingRow.id == booking.id, BookingRow.version == expected_version)
            .values(**cls._booking_values(booking), version=expected_version + 1)
        )
        if res.rowcount != 1:
            db.rollback()
            raise ConflictError(
                f"Booking {booking.id} changed since it was read (expected version {expected_version})."
            )
        db.commit()
        return booking.model_copy(update={"version": expected_version + 1})

    @staticmethod
    def _delete(db: Session, model, record_id: str) -> bool:
        row = db.get(model, record_id)
        if row is None:
            return False
        db.delete(row)
        db.commit()
        return True
