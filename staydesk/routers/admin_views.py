from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..config import settings
from ..deps import get_credential_verifier, get_lifecycle, get_store
from ..limiter import limiter
from ..models import BookingStatus
from ..schemas import AcceptIn, Booking, LoginIn, RejectIn, Room, RoomIn, TokenOut, TransitionOut, TransitionResult
from ..security import CredentialVerifier, issue_admin_token, require_admin, session_max_age
from ..services.availability import conflicts
from ..services.lifecycle import BookingLifecycle
from ..services.store import BookingStore

router = APIRouter(prefix="/api/admin", tags=["admin"])
# Everything below login/logout needs an active admin session
protected = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _transition_out(result: TransitionResult) -> TransitionOut:
    return TransitionOut(booking=result.booking, email_sent=result.notification.success, warning=result.warning)


async def _get_booking_or_404(store: BookingStore, booking_id: str) -> Booking:
    booking = await store.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking

# ==== Session ====

@router.post("/login", response_model=TokenOut)
@limiter.limit(settings.RATE_LIMIT_AUTH)
async def admin_login(request: Request, payload: LoginIn, response: Response, verifier: CredentialVerifier = Depends(get_credential_verifier)):
    if not verifier.verify(payload.username, payload.password):
        raise HTTPException(status_code=401, detail="Invalid username or password.")
    token = issue_admin_token(payload.username.strip())
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
        path="/",
        max_age=session_max_age(),
    )
    return TokenOut(token=token, expires_in=session_max_age())

@router.post("/logout")
def admin_logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return {"ok": True}

# ==== Rooms ====

@protected.post("/rooms", response_model=Room, status_code=201)
async def rooms_create(payload: RoomIn, store: BookingStore = Depends(get_store)):
    return await store.put_room(Room(**payload.model_dump()))

@protected.put("/rooms/{room_id}", response_model=Room)
async def rooms_update(room_id: str, payload: RoomIn, store: BookingStore = Depends(get_store)):
    return await store.put_room(Room(id=room_id, **payload.model_dump()))

@protected.delete("/rooms/{room_id}", status_code=204)
async def rooms_delete(room_id: str, store: BookingStore = Depends(get_store)):
    if not await store.delete_room(room_id):
        raise HTTPException(status_code=404, detail="Room not found")
    return Response(status_code=204)

# ==== Bookings ====

@protected.get("/bookings", response_model=List[Booking])
async def bookings_index(status: Optional[BookingStatus] = None, store: BookingStore = Depends(get_store)):
    bookings = await store.list_bookings()
    if status is not None:
        bookings = [b for b in bookings if b.status == status]
    return sorted(bookings, key=lambda b: b.created_at, reverse=True)

@protected.get("/bookings/{booking_id}", response_model=Booking)
async def bookings_detail(booking_id: str, store: BookingStore = Depends(get_store)):
    return await _get_booking_or_404(store, booking_id)

@protected.get("/bookings/{booking_id}/conflicts", response_model=List[Booking])
async def bookings_conflicts(booking_id: str, store: BookingStore = Depends(get_store)):
    booking = await _get_booking_or_404(store, booking_id)
    return conflicts(booking, await store.list_bookings())

@protected.post("/bookings/{booking_id}/accept", response_model=TransitionOut)
async def bookings_accept(booking_id: str, payload: Optional[AcceptIn] = None, store: BookingStore = Depends(get_store), lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    booking = await _get_booking_or_404(store, booking_id)
    result = await lifecycle.accept(booking, payload.proposed_check_in if payload else None)
    return _transition_out(result)

@protected.post("/bookings/{booking_id}/reject", response_model=TransitionOut)
async def bookings_reject(booking_id: str, payload: Optional[RejectIn] = None, store: BookingStore = Depends(get_store), lifecycle: BookingLifecycle = Depends(get_lifecycle)):
    booking = await _get_booking_or_404(store, booking_id)
    result = await lifecycle.reject(booking, payload.reason if payload else "")
    return _transition_out(result)

@protected.delete("/bookings/{booking_id}", status_code=204)
async def bookings_delete(booking_id: str, store: BookingStore = Depends(get_store)):
    if not await store.delete_booking(booking_id):
        raise HTTPException(status_code=404, detail="Booking not found")
    return Response(status_code=204)
