"""
Seat map and seat lock endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.api.deps import get_event_locks
from boxoffice.core.concurrency import KeyedLocks
from boxoffice.db.session import get_db
from boxoffice.schemas.seat import (
    LockSeatsRequest,
    LockSeatsResponse,
    ReleaseSeatsRequest,
    ReleaseSeatsResponse,
    SeatMapResponse,
    SeatResponse,
)
from boxoffice.services.availability_service import project_availability
from boxoffice.services.lock_service import acquire_seats, release_seats

router = APIRouter(prefix="/events/{event_id}/seats", tags=["Seats"])


def _seat_response(state) -> SeatResponse:
    return SeatResponse(
        id=state.seat_id,
        row_label=state.row_label,
        seat_number=state.seat_number,
        tier=state.tier,
        status=state.status,
        held_by_you=state.held_by_you,
        lock_expires=state.lock_expires,
    )


@router.get("", response_model=SeatMapResponse)
async def get_seat_map(
    event_id: str,
    session_id: Optional[str] = Query(None, alias="sessionId"),
    db: AsyncSession = Depends(get_db),
):
    """
    Seat map for an event. Never cached: expired locks are purged first so
    the map reflects what can be locked right now.
    """
    seat_map = await project_availability(db, event_id, session_id=session_id)
    return SeatMapResponse(
        event_id=seat_map.event_id,
        seats=[_seat_response(s) for s in seat_map.seats],
        seats_by_row={row: [_seat_response(s) for s in seats] for row, seats in seat_map.seats_by_row.items()},
        summary=seat_map.counts(),
    )


@router.post("/lock", response_model=LockSeatsResponse)
async def lock_seats(
    event_id: str,
    body: LockSeatsRequest,
    db: AsyncSession = Depends(get_db),
    event_locks: KeyedLocks = Depends(get_event_locks),
):
    """
    Lock seats for a session, all or nothing.

    409 with the unavailable seats and reasons if any seat is booked or held
    by another session. Re-locking replaces the session's previous selection.
    """
    grant = await acquire_seats(db, event_locks, event_id, body.seat_ids, body.session_id)
    return LockSeatsResponse(expires_at=grant.expires_at, locked_seats=len(grant.seat_ids))


@router.post("/release", response_model=ReleaseSeatsResponse)
async def unlock_seats(
    event_id: str,
    body: ReleaseSeatsRequest,
    db: AsyncSession = Depends(get_db),
    event_locks: KeyedLocks = Depends(get_event_locks),
):
    """Release every lock the session holds for the event. Always succeeds."""
    released = await release_seats(db, event_locks, event_id, body.session_id)
    return ReleaseSeatsResponse(released=released)
