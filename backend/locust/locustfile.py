"""
Locust Load Test Suite

Start the API with SEED_DEMO_DATA=true so there are events to fight over.

Run scenarios:
  locust -f locustfile.py --tags contention   # Many sessions, same few seats
  locust -f locustfile.py --tags throughput   # Listing cache
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests
"""

import random
import uuid

from locust import HttpUser, task, between, tag, events

# Shared state
EVENT_IDS = []
CONTENTION_EVENT_ID = None
CONTENTION_SEAT_IDS = []


def new_session_id():
    return f"load-{uuid.uuid4().hex[:12]}"


def random_email():
    return f"load_{random.randint(10000, 99999)}@test.com"


def discover_events(client):
    resp = client.get("/api/events", name="/api/events")
    if resp.status_code != 200:
        return
    for event in resp.json():
        if event["id"] not in EVENT_IDS:
            EVENT_IDS.append(event["id"])


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: contention users pick the front row of the first event")
    print("=" * 60)


class ContentionUser(HttpUser):
    """
    TEST 1: Contention - every user wants the same 4 seats

    Run: locust -f locustfile.py --tags contention -u 100 -r 50 --run-time 30s

    After test, verify no seat was booked twice:
      SELECT seat_id, COUNT(*) FROM booking_seats bs
        JOIN bookings b ON b.id = bs.booking_id
       WHERE b.event_id = X AND b.status IN ('pending', 'confirmed')
       GROUP BY seat_id HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.session_id = new_session_id()
        if CONTENTION_EVENT_ID:
            return
        discover_events(self.client)
        if not EVENT_IDS:
            return
        event_id = EVENT_IDS[0]
        resp = self.client.get(f"/api/events/{event_id}/seats", name="/api/events/{id}/seats")
        if resp.status_code == 200:
            row = resp.json()["seatsByRow"].get("A", [])
            globals()["CONTENTION_EVENT_ID"] = event_id
            CONTENTION_SEAT_IDS.extend(seat["id"] for seat in row[:4])
            print(f"\n✓ Contention event {event_id}, seats {len(CONTENTION_SEAT_IDS)}\n")

    @tag("contention")
    @task
    def lock_book_pay(self):
        """Lock, book and pay; a 409 on lock is the expected losing outcome."""
        if not CONTENTION_EVENT_ID or not CONTENTION_SEAT_IDS:
            return

        seat_ids = random.sample(CONTENTION_SEAT_IDS, k=random.randint(1, 2))
        with self.client.post(
            f"/api/events/{CONTENTION_EVENT_ID}/seats/lock",
            json={"seatIds": seat_ids, "sessionId": self.session_id},
            name="/api/events/{id}/seats/lock",
            catch_response=True,
        ) as resp:
            if resp.status_code == 409:
                resp.success()
                return
            if resp.status_code != 200:
                resp.failure(f"Unexpected: {resp.status_code}")
                return

        with self.client.post(
            "/api/bookings",
            json={
                "eventId": CONTENTION_EVENT_ID,
                "seatIds": seat_ids,
                "sessionId": self.session_id,
                "userEmail": random_email(),
                "userName": "Load Test",
            },
            catch_response=True,
        ) as resp:
            if resp.status_code == 409:
                resp.success()  # Lock lapsed between requests
                return
            if resp.status_code != 201:
                resp.failure(f"Unexpected: {resp.status_code}")
                return
            booking_id = resp.json()["bookingId"]

        with self.client.post(
            "/api/payments",
            json={"bookingId": booking_id, "method": "card"},
            catch_response=True,
        ) as resp:
            if resp.status_code in [200, 402]:
                resp.success()  # Simulated gateway declines some charges
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        """Hammer the cached endpoint."""
        category = random.choice([None, "Concert", "Theater", "Comedy", "Sports"])
        params = {"category": category} if category else {}
        self.client.get("/api/events", params=params, name="/api/events [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_seat_map(self):
        """Seat maps are never cached."""
        if not EVENT_IDS:
            discover_events(self.client)
        if EVENT_IDS:
            self.client.get(f"/api/events/{random.choice(EVENT_IDS)}/seats", name="/api/events/{id}/seats")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def lock_unknown_event(self):
        with self.client.post(
            "/api/events/does-not-exist/seats/lock",
            json={"seatIds": ["nope"], "sessionId": new_session_id()},
            name="/api/events/{id}/seats/lock [unknown]",
            catch_response=True,
        ) as resp:
            self.expect(resp, [404])

    @tag("edge")
    @task
    def lock_no_seats(self):
        with self.client.post(
            "/api/events/does-not-exist/seats/lock",
            json={"seatIds": [], "sessionId": new_session_id()},
            name="/api/events/{id}/seats/lock [empty]",
            catch_response=True,
        ) as resp:
            self.expect(resp, [400])

    @tag("edge")
    @task
    def book_without_lock(self):
        if not EVENT_IDS:
            discover_events(self.client)
        if not EVENT_IDS:
            return
        with self.client.post(
            "/api/bookings",
            json={
                "eventId": random.choice(EVENT_IDS),
                "seatIds": ["never-locked"],
                "sessionId": new_session_id(),
                "userEmail": random_email(),
                "userName": "Edge",
            },
            name="/api/bookings [no lock]",
            catch_response=True,
        ) as resp:
            self.expect(resp, [409])

    @tag("edge")
    @task
    def pay_unknown_booking(self):
        with self.client.post(
            "/api/payments",
            json={"bookingId": "does-not-exist", "method": "card"},
            name="/api/payments [unknown]",
            catch_response=True,
        ) as resp:
            self.expect(resp, [404])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/bookings",
            data="not json at all",
            name="/api/bookings [garbage]",
            catch_response=True,
        ) as resp:
            self.expect(resp, [400])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing listings and seat maps
      - Some sessions lock seats and walk away
      - A few complete the purchase
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.session_id = new_session_id()

    @task(50)
    def browse_events(self):
        discover_events(self.client)

    @task(20)
    def view_seat_map(self):
        if EVENT_IDS:
            self.client.get(
                f"/api/events/{random.choice(EVENT_IDS)}/seats",
                params={"sessionId": self.session_id},
                name="/api/events/{id}/seats",
            )

    @task(10)
    def purchase(self):
        if not EVENT_IDS:
            return
        event_id = random.choice(EVENT_IDS)
        resp = self.client.get(f"/api/events/{event_id}/seats", name="/api/events/{id}/seats")
        if resp.status_code != 200:
            return
        free = [seat["id"] for seat in resp.json()["seats"] if seat["status"] == "available"]
        if not free:
            return
        seat_ids = random.sample(free, k=min(len(free), random.randint(1, 3)))

        resp = self.client.post(
            f"/api/events/{event_id}/seats/lock",
            json={"seatIds": seat_ids, "sessionId": self.session_id},
            name="/api/events/{id}/seats/lock",
        )
        if resp.status_code != 200:
            return

        if random.random() < 0.3:
            # Changed their mind
            self.client.post(
                f"/api/events/{event_id}/seats/release",
                json={"sessionId": self.session_id},
                name="/api/events/{id}/seats/release",
            )
            return

        resp = self.client.post("/api/bookings", json={
            "eventId": event_id,
            "seatIds": seat_ids,
            "sessionId": self.session_id,
            "userEmail": random_email(),
            "userName": "Realistic User",
        })
        if resp.status_code == 201:
            self.client.post("/api/payments", json={"bookingId": resp.json()["bookingId"], "method": "card"})
