"""
Locust Load Test Suite

Expects the API to run with SEED_DATA=true so the demo organizer exists.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import uuid
from datetime import datetime, timezone, timedelta
from locust import HttpUser, task, between, tag, events

ORGANIZER = {"email": "organizer@app.com", "password": "password"}
CONCURRENCY_SEATS = 10

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None


def random_email():
    return f"load_{uuid.uuid4().hex[:12]}@test.com"


def login(client, email, password):
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


def register_student(client):
    """Register a fresh student. Returns (student_id, auth headers)."""
    email = random_email()
    resp = client.post("/api/v1/auth/register", json={
        "name": "Load Student",
        "email": email,
        "password": "test123",
    })
    if resp.status_code != 201:
        return None, {}
    return resp.json()["data"]["id"], login(client, email, "test123")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: concurrency event gets {CONCURRENCY_SEATS} seats")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 students -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM general_reservations WHERE event_id = X AND NOT is_cancelled;
    Should be <= 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.student_id, self.headers = register_student(self.client)

        if not CONCURRENCY_EVENT_ID:
            organizer_headers = login(self.client, **ORGANIZER)
            start = datetime.now(timezone.utc) + timedelta(days=30)
            resp = self.client.post(
                "/api/v1/general-events/",
                json={
                    "name": "Concurrency Test Event",
                    "description": f"{CONCURRENCY_SEATS} seats only",
                    "start_datetime": start.isoformat(),
                    "end_datetime": (start + timedelta(hours=2)).isoformat(),
                    "capacity": CONCURRENCY_SEATS,
                },
                headers=organizer_headers,
            )
            if resp.status_code == 201:
                globals()["CONCURRENCY_EVENT_ID"] = resp.json()["data"]["id"]
                print(f"\nCreated event {CONCURRENCY_EVENT_ID} with {CONCURRENCY_SEATS} seats\n")

    @tag("concurrency")
    @task
    def reserve_limited_seats(self):
        """All students fight for the same seats."""
        if not CONCURRENCY_EVENT_ID or not self.headers:
            return

        with self.client.post(
            "/api/v1/general-reservations/",
            json={"event_id": CONCURRENCY_EVENT_ID, "student_id": self.student_id},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: sold out or already reserved
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        _, self.headers = register_student(self.client)

    @tag("throughput", "read")
    @task(10)
    def list_active_events(self):
        resp = self.client.get(
            "/api/v1/general-events/?active_only=true",
            headers=self.headers,
            name="/api/v1/general-events/ [cached]",
        )
        if resp.status_code == 200:
            for event in resp.json()["data"]:
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_availability(self):
        if EVENT_IDS:
            self.client.get(
                f"/api/v1/general-events/{random.choice(EVENT_IDS)}/availability",
                headers=self.headers,
                name="/api/v1/general-events/{id}/availability",
            )

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.student_id, self.headers = register_student(self.client)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_event(self):
        with self.client.post(
            "/api/v1/general-reservations/",
            json={"event_id": str(uuid.uuid4()), "student_id": self.student_id},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def malformed_event_id(self):
        with self.client.post(
            "/api/v1/general-reservations/",
            json={"event_id": "not-a-uuid", "student_id": self.student_id},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            self._expect(resp, (422,))

    @tag("edge")
    @task
    def cancel_unknown_reservation(self):
        with self.client.delete(
            f"/api/v1/general-reservations/{uuid.uuid4()}",
            headers=self.headers,
            name="/api/v1/general-reservations/{id}",
            catch_response=True,
        ) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post(
            "/api/v1/general-reservations/",
            json={"event_id": str(uuid.uuid4()), "student_id": str(uuid.uuid4())},
            catch_response=True,
        ) as resp:
            self._expect(resp, (401,))
