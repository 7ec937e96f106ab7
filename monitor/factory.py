"""
Wiring of the monitor and its collaborators from environment settings.
"""

import logging
import os
from typing import Optional

import redis

from monitor.alert_store import RedisAlertStore
from monitor.altitude_monitor import AltitudeMonitor
from monitor.config import (
    DATABASE_URL,
    REDIS_TIMEOUT_SECONDS,
    REDIS_URL,
    ZONE_QUERY_TIMEOUT_MS,
    ZONES_FILE,
    MonitorConfig,
)
from monitor.snapshots import RedisSnapshotSource
from monitor.zones import LocalZoneIndex, PostgisZoneIndex, ZoneContainmentOracle

logger = logging.getLogger(__name__)


def create_redis_client(url: str = REDIS_URL, timeout_s: float = REDIS_TIMEOUT_SECONDS) -> redis.Redis:
    """Create Redis client with bounded per-call timeouts."""
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout_s,
        socket_connect_timeout=timeout_s,
    )


def create_oracle(
    database_url: Optional[str] = DATABASE_URL,
    zones_file: str = ZONES_FILE,
    timeout_ms: int = ZONE_QUERY_TIMEOUT_MS,
) -> ZoneContainmentOracle:
    """
    Build the containment oracle.

    The fallback index starts from the zones file (if present) and is then
    refreshed from the zone table when it is reachable.
    """
    if os.path.exists(zones_file):
        fallback = LocalZoneIndex.from_geojson(zones_file)
        logger.info(f"Loaded {fallback.size()} fallback zones from {zones_file}")
    else:
        logger.warning(f"Zones file {zones_file} not found, fallback index starts empty")
        fallback = LocalZoneIndex()

    primary = PostgisZoneIndex(database_url, timeout_ms) if database_url else None
    oracle = ZoneContainmentOracle(primary, fallback)
    oracle.refresh_fallback()
    return oracle


def create_monitor(
    config: Optional[MonitorConfig] = None,
    client: Optional[redis.Redis] = None,
    oracle: Optional[ZoneContainmentOracle] = None,
) -> AltitudeMonitor:
    """Construct a monitor wired to Redis and the zone oracle."""
    config = config or MonitorConfig.from_env()
    client = client or create_redis_client()
    oracle = oracle or create_oracle()

    return AltitudeMonitor(
        snapshots=RedisSnapshotSource(client),
        oracle=oracle,
        store=RedisAlertStore(client, ttl_s=config.alert_ttl_s, cap=config.active_alerts_cap),
        config=config,
    )
