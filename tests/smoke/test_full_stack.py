"""
Smoke test: End-to-end check from position cache -> monitor -> HTTP API.

This test verifies that:
1. A low aircraft written to Redis is picked up by a monitor cycle
2. The alert is served by the backend's active and history endpoints
3. Aircraft status is served, and unknown aircraft return 404

Requires a running backend and the Redis instance it reads.
"""

import os
import time
import uuid

import pytest
import redis
import requests

from tests.support import OUTSIDE, put_position

pytestmark = pytest.mark.integration

BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
TEST_TIMEOUT = 30  # seconds


@pytest.fixture(scope="module")
def backend():
    """Skip unless the backend is up."""
    try:
        response = requests.get(f"{BACKEND_URL}/health", timeout=5)
        response.raise_for_status()
    except requests.RequestException as e:
        pytest.skip(f"Backend not reachable at {BACKEND_URL}: {e}")
    return BACKEND_URL


@pytest.fixture(scope="module")
def redis_client():
    client = redis.Redis.from_url(REDIS_URL, decode_responses=True, socket_timeout=2)
    try:
        client.ping()
    except redis.RedisError as e:
        pytest.skip(f"Could not connect to Redis: {e}")
    yield client
    client.close()


@pytest.fixture
def low_aircraft(redis_client):
    callsign = f"SMK{uuid.uuid4().hex[:5].upper()}"
    put_position(redis_client, callsign, 450, OUTSIDE)
    yield callsign
    redis_client.delete(f"aircraft:{callsign}:position")


def test_low_aircraft_alert_served(backend, low_aircraft):
    """Manual check raises a CRITICAL alert visible on both read endpoints."""
    response = requests.post(f"{backend}/api/altitude/check", timeout=TEST_TIMEOUT)
    assert response.status_code == 200
    raised = [a for a in response.json()["data"] if a["callsign"] == low_aircraft]
    assert len(raised) == 1
    assert raised[0]["severity"] == "CRITICAL"

    active = requests.get(f"{backend}/api/altitude/alerts", timeout=5).json()["data"]
    assert any(a["id"] == raised[0]["id"] for a in active)

    history = requests.get(f"{backend}/api/altitude/history", params={"limit": 1000}, timeout=5).json()["data"]
    assert any(a["id"] == raised[0]["id"] for a in history)


def test_periodic_monitor_raises_alert(backend, low_aircraft):
    """The embedded schedule picks up the aircraft without a manual trigger."""
    deadline = time.time() + TEST_TIMEOUT
    while time.time() < deadline:
        active = requests.get(f"{backend}/api/altitude/alerts", timeout=5).json()["data"]
        if any(a["callsign"] == low_aircraft for a in active):
            return
        time.sleep(1)
    pytest.fail(f"No alert for {low_aircraft} within {TEST_TIMEOUT}s")


def test_aircraft_status(backend, low_aircraft):
    response = requests.get(f"{backend}/api/altitude/aircraft/{low_aircraft}", timeout=5)
    assert response.status_code == 200
    assert response.json()["data"]["is_safe"] is False


def test_unknown_aircraft_404(backend):
    response = requests.get(f"{backend}/api/altitude/aircraft/UNKNOWN-{uuid.uuid4().hex}", timeout=5)
    assert response.status_code == 404
