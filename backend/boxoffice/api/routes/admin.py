"""
Admin dashboard endpoints. Read-only.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.db.session import get_db
from boxoffice.schemas.admin import AdminBookingsResponse, AdminStatsResponse
from boxoffice.services.admin_service import dashboard_stats, search_bookings

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=AdminStatsResponse)
async def stats(db: AsyncSession = Depends(get_db)):
    """Revenue, confirmed bookings and per-event sales."""
    return AdminStatsResponse(**await dashboard_stats(db))


@router.get("/bookings", response_model=AdminBookingsResponse)
async def bookings(
    status: Optional[str] = Query(None, pattern="^(pending|confirmed|abandoned)$"),
    event_id: Optional[str] = Query(None, alias="eventId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await search_bookings(db, status=status, event_id=event_id, page=page, limit=limit)
    return AdminBookingsResponse(bookings=rows, total=total, page=page, limit=limit)
