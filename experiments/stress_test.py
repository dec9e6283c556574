#!/usr/bin/env python3
"""
Seat contention stress test for the Box Office API.

Many sessions lock the same handful of seats at once, then every winner books
and pays. Verifies that no seat ends up in two bookings.

Needs a running API started with SEED_DEMO_DATA=true.
"""

import asyncio
import aiohttp
import time
import uuid
from collections import Counter

API_URL = "http://localhost:8000"
CONCURRENT_SESSIONS = 50
CONTESTED_SEATS = 4


class StressTest:
    def __init__(self):
        self.results = {
            "locks_granted": 0,
            "lock_conflicts": 0,
            "bookings": 0,
            "payments": 0,
            "declines": 0,
            "errors": 0,
            "response_times": []
        }
        self.event_id = None
        self.seat_ids = []
        self.booking_ids = []

    async def pick_contested_seats(self, session: aiohttp.ClientSession):
        """First listed event, first few free seats of its front row."""
        async with session.get(f"{API_URL}/api/events") as resp:
            if resp.status != 200:
                return
            events = await resp.json()
        if not events:
            return
        self.event_id = events[0]["id"]

        async with session.get(f"{API_URL}/api/events/{self.event_id}/seats") as resp:
            seat_map = await resp.json()
        free = [s["id"] for s in seat_map["seats"] if s["status"] == "available"]
        self.seat_ids = free[:CONTESTED_SEATS]
        print(f"✓ Event {self.event_id}, contesting {len(self.seat_ids)} seats")

    async def lock_book_pay(self, session: aiohttp.ClientSession, user_num: int):
        """One session: lock every contested seat, then book and pay if granted."""
        session_id = f"stress-{user_num}-{uuid.uuid4().hex[:8]}"
        start = time.time()

        try:
            async with session.post(
                f"{API_URL}/api/events/{self.event_id}/seats/lock",
                json={"seatIds": self.seat_ids, "sessionId": session_id},
            ) as resp:
                elapsed = (time.time() - start) * 1000
                self.results["response_times"].append(elapsed)
                if resp.status == 409:
                    self.results["lock_conflicts"] += 1
                    return
                if resp.status != 200:
                    self.results["errors"] += 1
                    print(f"✗ Session {user_num} lock failed: {resp.status}")
                    return
            self.results["locks_granted"] += 1
            print(f"✓ Session {user_num} locked seats ({elapsed:.0f}ms)")

            async with session.post(f"{API_URL}/api/bookings", json={
                "eventId": self.event_id,
                "seatIds": self.seat_ids,
                "sessionId": session_id,
                "userEmail": f"stress_{user_num}@test.com",
                "userName": f"Stress {user_num}",
            }) as resp:
                if resp.status != 201:
                    self.results["errors"] += 1
                    print(f"✗ Session {user_num} booking failed: {resp.status}")
                    return
                booking_id = (await resp.json())["bookingId"]
            self.results["bookings"] += 1
            self.booking_ids.append(booking_id)

            async with session.post(
                f"{API_URL}/api/payments",
                json={"bookingId": booking_id, "method": "card"},
            ) as resp:
                if resp.status == 200:
                    self.results["payments"] += 1
                elif resp.status == 402:
                    self.results["declines"] += 1
                else:
                    self.results["errors"] += 1
        except aiohttp.ClientError as e:
            self.results["errors"] += 1
            print(f"✗ Session {user_num} error: {e}")

    async def count_seat_holders(self, session: aiohttp.ClientSession) -> Counter:
        holders = Counter()
        for booking_id in self.booking_ids:
            async with session.get(f"{API_URL}/api/bookings/{booking_id}") as resp:
                booking = await resp.json()
            if booking["status"] in ("pending", "confirmed"):
                holders.update(seat["id"] for seat in booking["seats"])
        return holders

    async def run(self):
        print(f"\n{'='*60}")
        print(f"STRESS TEST: {CONCURRENT_SESSIONS} sessions → {CONTESTED_SEATS} seats")
        print(f"{'='*60}\n")

        async with aiohttp.ClientSession() as session:
            print("Phase 1: Picking contested seats...")
            await self.pick_contested_seats(session)
            if not self.event_id or not self.seat_ids:
                print("✗ No event with free seats (start the API with SEED_DEMO_DATA=true)")
                return
            print()

            print(f"Phase 2: {CONCURRENT_SESSIONS} sessions locking simultaneously...")
            print("-" * 60)
            start_time = time.time()
            await asyncio.gather(*(self.lock_book_pay(session, i) for i in range(CONCURRENT_SESSIONS)))
            total_time = time.time() - start_time

            holders = await self.count_seat_holders(session)

        print("\n" + "="*60)
        print("RESULTS")
        print("="*60)
        print(f"Total time:        {total_time:.2f}s")
        print(f"Locks granted:     {self.results['locks_granted']}")
        print(f"Lock conflicts:    {self.results['lock_conflicts']}")
        print(f"Bookings:          {self.results['bookings']}")
        print(f"Payments:          {self.results['payments']} ({self.results['declines']} declined)")
        print(f"Errors:            {self.results['errors']}")

        if self.results["response_times"]:
            times = sorted(self.results["response_times"])
            print(f"\nLock response times:")
            print(f"  Avg: {sum(times)/len(times):.0f}ms")
            print(f"  P50: {times[len(times)//2]:.0f}ms")
            print(f"  P95: {times[int(len(times)*0.95)]:.0f}ms")

        print("\n" + "="*60)
        doubled = [seat for seat, count in holders.items() if count > 1]
        if self.results["locks_granted"] <= 1 and not doubled:
            print("✓ PASS: every contested seat went to at most one session")
        else:
            print("✗ FAIL: DOUBLE BOOKING DETECTED!")
            print(f"  locks granted: {self.results['locks_granted']}, seats held twice: {doubled}")
        print("="*60 + "\n")


if __name__ == "__main__":
    test = StressTest()
    asyncio.run(test.run())
