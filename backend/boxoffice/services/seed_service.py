"""
Demo venues, seats and events for local runs.
"""

import string
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.core.logging import get_logger
from boxoffice.db.session import transaction
from boxoffice.models import Event, Seat, SeatTier, Venue

logger = get_logger(__name__)

DEMO_VENUES = [
    {"name": "Grand Concert Hall", "address": "123 Music Avenue", "city": "New York", "rows": 15, "seats_per_row": 20},
    {"name": "Downtown Theater", "address": "456 Broadway St", "city": "Los Angeles", "rows": 10, "seats_per_row": 20},
    {"name": "Metro Arena", "address": "789 Sports Way", "city": "Chicago", "rows": 20, "seats_per_row": 25},
]

DEMO_EVENTS = [
    ("Rock Symphony Night", "Classical orchestra meets rock legends.", "Concert", 7, 75, 125, 200, 0),
    ("Hamilton - The Musical", "The story of America then, told by America now.", "Theater", 14, 150, 250, 400, 1),
    ("Stand-Up Comedy Festival", "Top comedians from around the world.", "Comedy", 3, 45, 70, 100, 1),
    ("NBA Finals Watch Party", "Watch the big game on giant screens.", "Sports", 21, 25, 45, 75, 2),
    ("Electronic Dreams Festival", "Top DJs and an unforgettable light show.", "Concert", 30, 95, 175, 300, 0),
    ("Jazz & Blues Evening", "Smooth jazz and soulful blues.", "Concert", 10, 65, 110, 180, 0),
]


def tier_for_row(row_index: int) -> str:
    """Front two rows are vip, the next three premium, the rest standard."""
    if row_index < 2:
        return SeatTier.VIP.value
    if row_index < 5:
        return SeatTier.PREMIUM.value
    return SeatTier.STANDARD.value


def build_venue(name: str, address: str, city: str, rows: int, seats_per_row: int) -> Venue:
    """A venue with its full seat grid. Row labels run A, B, C..."""
    if rows > len(string.ascii_uppercase):
        raise ValueError(f"At most {len(string.ascii_uppercase)} rows are supported")
    venue = Venue(
        name=name,
        address=address,
        city=city,
        capacity=rows * seats_per_row,
        rows=rows,
        seats_per_row=seats_per_row,
    )
    venue.seats = [
        Seat(row_label=string.ascii_uppercase[r], seat_number=n, tier=tier_for_row(r))
        for r in range(rows)
        for n in range(1, seats_per_row + 1)
    ]
    return venue


async def seed_demo_data(db: AsyncSession) -> bool:
    """Insert demo data if the venue table is empty. Returns True if it seeded."""
    existing = (await db.execute(select(func.count(Venue.id)))).scalar()
    if existing:
        return False

    async with transaction(db, "seed_demo_data"):
        venues = [build_venue(**venue) for venue in DEMO_VENUES]
        db.add_all(venues)
        await db.flush()

        today = datetime.now(timezone.utc).replace(hour=19, minute=30, second=0, microsecond=0)
        for name, description, category, days, base, premium, vip, venue_idx in DEMO_EVENTS:
            db.add(Event(
                venue_id=venues[venue_idx].id,
                name=name,
                description=description,
                category=category,
                date=today + timedelta(days=days),
                base_price=Decimal(base),
                premium_price=Decimal(premium),
                vip_price=Decimal(vip),
            ))

    logger.info("demo_data_seeded", venues=len(DEMO_VENUES), events=len(DEMO_EVENTS))
    return True
