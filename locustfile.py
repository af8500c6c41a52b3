"""
Locust Load Testing File for Email Verification API

Run with:
    locust -f locustfile.py --host=http://localhost:5000

Then open http://localhost:8089 in your browser to control the test.
"""

import random
from locust import HttpUser, task, between, events
from locust.runners import MasterRunner, WorkerRunner

VERIFY_PATH = "/api/v1/emails/verify"
BATCH_PATH = "/api/v1/emails/batch"

# Domains repeat on purpose so most lookups are served by the DNS cache
VALID_EMAILS = [
    "user@example.com",
    "john.doe@gmail.com",
    "alice123@gmail.com",
    "bob_smith@yahoo.com",
    "charlie.brown@outlook.com",
    "david+tag@proton.me",
    "grace@python.org",
    "henry@github.com",
]

UNKNOWN_DOMAIN_EMAILS = [
    "user@nonexistent-domain-xyz123.invalid",
    "someone@no-such-host-abc987.invalid",
]

INVALID_EMAILS = [
    "plainaddress",
    "@missing-local.com",
    "missing-domain@",
    "user@domain",
    "user@@double-at.com",
    "user space@domain.com",
    "user@",
    "@",
]

MIXED_EMAILS = VALID_EMAILS + UNKNOWN_DOMAIN_EMAILS + INVALID_EMAILS


def build_csv(emails):
    rows = ["name,email"] + [f"contact{i},{email}" for i, email in enumerate(emails)]
    return "\n".join(rows).encode("utf-8")


class EmailVerifierUser(HttpUser):
    """
    Simulates a typical user of the Email Verification API.
    """

    wait_time = between(0.5, 2)

    @task(10)
    def verify_valid_email(self):
        """Verify an address on a real mail domain (most common operation)."""
        self.client.post(
            VERIFY_PATH,
            json={"email": random.choice(VALID_EMAILS)},
            name=f"{VERIFY_PATH} [valid]"
        )

    @task(3)
    def verify_invalid_email(self):
        """Verify a malformed address; never reaches DNS."""
        self.client.post(
            VERIFY_PATH,
            json={"email": random.choice(INVALID_EMAILS)},
            name=f"{VERIFY_PATH} [invalid]"
        )

    @task(2)
    def verify_unknown_domain(self):
        self.client.post(
            VERIFY_PATH,
            json={"email": random.choice(UNKNOWN_DOMAIN_EMAILS), "options": {"check_smtp": True}},
            name=f"{VERIFY_PATH} [unknown domain]"
        )

    @task(5)
    def verify_get(self):
        """Verification via query parameter."""
        self.client.get(
            VERIFY_PATH,
            params={"email": random.choice(VALID_EMAILS)},
            name=f"{VERIFY_PATH} [GET]"
        )

    @task(1)
    def health_check(self):
        self.client.get("/health", name="/health")


class BatchUploadUser(HttpUser):
    """
    A user that uploads CSV files for bulk verification.
    Lower frequency, heavier load per request.
    """

    wait_time = between(2, 5)

    @task
    def upload_batch(self):
        batch_size = random.randint(10, 50)
        emails = [random.choice(MIXED_EMAILS) for _ in range(batch_size)]
        self.client.post(
            BATCH_PATH,
            files={"file": ("contacts.csv", build_csv(emails), "text/csv")},
            name=BATCH_PATH
        )


@events.request.add_listener
def on_request(request_type, name, response_time, response_length, exception, **kwargs):
    """Log failed and slow requests."""
    if exception:
        print(f"Request failed: {name} - {exception}")
    elif response_time > 5000:  # slower than one DNS deadline
        print(f"Slow request: {name} took {response_time:.2f}ms")


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("=" * 50)
    print("Email Verification Load Test Starting")
    print("=" * 50)
    if isinstance(environment.runner, MasterRunner):
        print("Running in distributed mode (master)")
    elif isinstance(environment.runner, WorkerRunner):
        print("Running in distributed mode (worker)")
    else:
        print("Running in standalone mode")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("=" * 50)
    print("Email Verification Load Test Complete")
    print("=" * 50)

    if hasattr(environment, 'stats'):
        stats = environment.stats
        print(f"\nTotal Requests: {stats.total.num_requests}")
        print(f"Total Failures: {stats.total.num_failures}")
        print(f"Average Response Time: {stats.total.avg_response_time:.2f}ms")
        print(f"95th Percentile: {stats.total.get_response_time_percentile(0.95):.2f}ms")
        print(f"Requests/sec: {stats.total.total_rps:.2f}")
