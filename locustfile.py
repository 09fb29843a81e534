"""
Locust Load Testing File for the Email Check API

Run with:
    locust -f locustfile.py --host=http://localhost:5000

Then open http://localhost:8089 in your browser to start the test. User
count follows RampUpShape, which stops the run after five minutes.
"""

import logging
import random

from locust import HttpUser, LoadTestShape, task, between, events

logger = logging.getLogger(__name__)

WELL_FORMED_EMAILS = [
    "a@b.co",
    "user@example.com",
    "john.doe@company.org",
    "bob_smith@yahoo.com",
    "david+tag@proton.me",
    "eve@subdomain.example.co.uk",
    "frank@my-domain.io",
    "percent%user@example.net",
]

# Literal domains are never looked up
LITERAL_EMAILS = [
    "user@192.168.0.1",
    "user@[10.0.0.1]",
    "user@[IPv6:2001:db8::1]",
]

# Well formed, but the domains do not exist
UNRESOLVABLE_EMAILS = [
    "user@does-not-exist.invalid",
    "someone@nowhere.example",
]

MALFORMED_EMAILS = [
    "",
    "plainaddress",
    "@missing-local.com",
    "user@",
    "user@@double-at.com",
    ".user@domain.com",
    "user..name@domain.com",
    "user name@domain.com",
    "user@domain",
    "user@domain..com",
    "user@-domain.com",
    "user@sub_domain.com",
    "user@example.1",
    "a" * 65 + "@example.com",
    "x" * 300,
]

MIXED_EMAILS = WELL_FORMED_EMAILS + LITERAL_EMAILS + MALFORMED_EMAILS


class EmailCheckUser(HttpUser):
    """
    Simulates a client of the Email Check API.
    """

    wait_time = between(0.5, 2)

    @task(10)
    def validate_well_formed(self):
        """Validate a well formed address (most common operation)."""
        self.client.post(
            "/validate",
            json={"email": random.choice(WELL_FORMED_EMAILS)},
            name="/validate [valid]"
        )

    @task(4)
    def validate_malformed(self):
        """Validate a malformed address."""
        self.client.post(
            "/validate",
            json={"email": random.choice(MALFORMED_EMAILS)},
            name="/validate [invalid]"
        )

    @task(5)
    def quick_check(self):
        """Quick GET validation check."""
        self.client.get(
            "/quick-check",
            params={"email": random.choice(MIXED_EMAILS)},
            name="/quick-check"
        )

    @task(2)
    def check_resolvable(self):
        """Combined check that performs a DNS lookup."""
        self.client.post(
            "/check",
            json={"email": random.choice(WELL_FORMED_EMAILS)},
            name="/check [lookup]"
        )

    @task(1)
    def check_without_lookup(self):
        """Combined check that completes without a DNS lookup."""
        self.client.post(
            "/check",
            json={"email": random.choice(LITERAL_EMAILS + MALFORMED_EMAILS)},
            name="/check [no lookup]"
        )

    @task(1)
    def check_unresolvable(self):
        """Combined check whose lookup fails; the address must stay valid."""
        with self.client.post(
            "/check",
            json={"email": random.choice(UNRESOLVABLE_EMAILS)},
            name="/check [unresolvable]",
            catch_response=True
        ) as response:
            if response.status_code == 200 and response.json().get('is_valid') is not True:
                response.failure("DNS failure marked a well formed address invalid")

    @task(1)
    def validate_batch(self):
        """Validate a batch of emails."""
        batch_size = random.randint(5, 10)
        self.client.post(
            "/validate/batch",
            json={"emails": random.sample(MIXED_EMAILS, batch_size)},
            name="/validate/batch"
        )

    @task(1)
    def health_check(self):
        """Health check endpoint."""
        self.client.get("/health", name="/health")


@events.request.add_listener
def on_request(request_type, name, response_time, response_length, exception, **kwargs):
    """Log failed and slow requests."""
    if exception:
        logger.warning("Request failed: %s - %s", name, exception)
    elif response_time > 1000:
        logger.info("Slow request: %s took %.2fms", name, response_time)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Summarize the run."""
    stats = environment.stats.total
    logger.info(
        "Requests: %d, failures: %d, median: %.2fms, p95: %.2fms, rps: %.2f",
        stats.num_requests,
        stats.num_failures,
        stats.median_response_time,
        stats.get_response_time_percentile(0.95),
        stats.total_rps
    )


class RampUpShape(LoadTestShape):
    """
    Ramps users up in stages, then stops.
    """

    stages = [
        {"duration": 60, "users": 10, "spawn_rate": 1},
        {"duration": 120, "users": 50, "spawn_rate": 5},
        {"duration": 180, "users": 100, "spawn_rate": 10},
        {"duration": 240, "users": 200, "spawn_rate": 20},
        {"duration": 300, "users": 500, "spawn_rate": 50},
    ]

    def tick(self):
        run_time = self.get_run_time()

        for stage in self.stages:
            if run_time < stage["duration"]:
                return stage["users"], stage["spawn_rate"]

        return None
