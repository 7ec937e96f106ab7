"""
Integration test: Verify the alert store and monitor against a live Redis.

This test verifies:
1. Alerts are written with a TTL
2. The active list is capped
3. History is read back most recent first
4. A full monitor cycle over real position hashes
"""

import os
import uuid
from datetime import timedelta

import pytest
import redis

from contracts.validation import AlertRecord, Position
from monitor.alert_store import PersistOutcome, RedisAlertStore, alert_key
from monitor.altitude_monitor import AltitudeMonitor
from monitor.config import MonitorConfig
from monitor.snapshots import RedisSnapshotSource
from monitor.zones import LocalZoneIndex, ZoneContainmentOracle
from tests.support import FIXED_NOW, IN_ZONE, OUTSIDE, RWY_09, put_position

pytestmark = pytest.mark.integration

REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture(scope="module")
def redis_client():
    """Create Redis connection on a scratch database."""
    client = redis.Redis.from_url(REDIS_URL, decode_responses=True, socket_timeout=2, socket_connect_timeout=2)
    try:
        client.ping()
    except redis.RedisError as e:
        pytest.skip(f"Could not connect to Redis: {e}")
    yield client
    client.close()


@pytest.fixture(autouse=True)
def clean_db(redis_client):
    redis_client.flushdb()
    yield
    redis_client.flushdb()


def make_alert(n: int, seconds: int = 0) -> AlertRecord:
    return AlertRecord(
        id=f"IT{n}-{uuid.uuid4().hex[:8]}",
        callsign=f"IT{n}",
        altitude=450.0,
        position=Position(latitude=OUTSIDE[0], longitude=OUTSIDE[1]),
        severity="CRITICAL",
        timestamp=FIXED_NOW + timedelta(seconds=seconds),
    )


def test_alert_written_with_ttl(redis_client):
    store = RedisAlertStore(redis_client, ttl_s=300)
    alert = make_alert(1)

    assert store.put(alert) is PersistOutcome.STORED

    ttl = redis_client.ttl(alert_key(alert.id))
    assert 0 < ttl <= 300


def test_active_list_capped(redis_client):
    store = RedisAlertStore(redis_client, cap=100)
    for n in range(101):
        store.put(make_alert(n, seconds=n))

    active = store.list_active()

    assert redis_client.llen("alerts:altitude:active") == 100
    assert active[0].callsign == "IT100"
    assert active[-1].callsign == "IT1"


def test_history_most_recent_first(redis_client):
    store = RedisAlertStore(redis_client)
    for n in range(5):
        store.put(make_alert(n, seconds=n * 10))

    assert [a.callsign for a in store.list_history(2)] == ["IT4", "IT3"]


def test_monitor_cycle(redis_client):
    put_position(redis_client, "AC100", 450, OUTSIDE)
    put_position(redis_client, "AC200", 600, IN_ZONE)
    put_position(redis_client, "AC300", 300, OUTSIDE, on_ground=True)

    store = RedisAlertStore(redis_client)
    monitor = AltitudeMonitor(
        snapshots=RedisSnapshotSource(redis_client),
        oracle=ZoneContainmentOracle(None, LocalZoneIndex([RWY_09])),
        store=store,
        config=MonitorConfig(),
    )
    try:
        alerts = monitor.check()
    finally:
        monitor.close()

    assert [a.callsign for a in alerts] == ["AC100"]
    assert [a.id for a in store.list_active()] == [alerts[0].id]
