"""
Shared fixtures for AltiGuard tests.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from monitor.alert_store import RedisAlertStore
from monitor.altitude_monitor import AltitudeMonitor
from monitor.config import MonitorConfig
from monitor.snapshots import RedisSnapshotSource
from monitor.zones import LocalZoneIndex, ZoneContainmentOracle
from tests.support import FIXED_NOW, RWY_09, FakeRedis


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def zone_index():
    return LocalZoneIndex([RWY_09])


@pytest.fixture
def oracle(zone_index):
    return ZoneContainmentOracle(primary=None, fallback=zone_index)


@pytest.fixture
def store(fake_redis):
    return RedisAlertStore(fake_redis, ttl_s=300, cap=100)


@pytest.fixture
def snapshots(fake_redis):
    return RedisSnapshotSource(fake_redis)


@pytest.fixture
def monitor(snapshots, oracle, store):
    m = AltitudeMonitor(
        snapshots=snapshots,
        oracle=oracle,
        store=store,
        config=MonitorConfig(min_safe_altitude_ft=1000, check_interval_s=5),
        clock=lambda: FIXED_NOW,
    )
    yield m
    m.close()
