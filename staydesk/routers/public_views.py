from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_lifecycle, get_store
from ..schemas import Booking, BookingRequest, OccupiedRange, Room
from ..services.availability import occupied_ranges
from ..services.lifecycle import BookingLifecycle
from ..services.store import BookingStore

router = APIRouter(prefix="/api", tags=["public"])

@router.get("/rooms", response_model=List[Room])
async def rooms_index(store: BookingStore = Depends(get_store)):
    return await store.list_rooms()

@router.get("/rooms/{room_id}", response_model=Room)
async def room_detail(room_id: str, store: BookingStore = Depends(get_store)):
    room = await store.get_room(room_id)
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    return room

@router.get("/rooms/{room_id}/calendar", response_model=List[OccupiedRange])
async def room_calendar(room_id: str, start: date, end: date, store: BookingStore = Depends(get_store)):
    """Accepted stays of a room within [start, end) (public, read-only, no guest details)."""
    if end <= start:
        raise HTTPException(status_code=400, detail="end must be after start")
    return occupied_ranges(room_id, await store.list_bookings(), start, end)

@router.post("/bookings", response_model=Booking, status_code=201)
async def bookings_create(payload: BookingRequest, lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    return await lifecycle.create(payload)
