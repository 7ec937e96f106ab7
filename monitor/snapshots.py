"""
Position snapshot source backed by the Redis aircraft position cache.

An upstream ingestion process keeps one hash per aircraft at
aircraft:{callsign}:position. This module only reads them.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional

import redis
from pydantic import ValidationError

from contracts.constants import AIRCRAFT_POSITION_KEY, AIRCRAFT_POSITION_PATTERN
from contracts.validation import AircraftSnapshot

logger = logging.getLogger(__name__)

SCAN_BATCH = 500

# Epoch values above this are milliseconds
EPOCH_MS_THRESHOLD = 1e11


def _float_or_none(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _instant_or_none(value) -> Optional[datetime]:
    """Parse an ISO 8601 string or epoch seconds/milliseconds. None if unparsable."""
    if value is None or value == "":
        return None

    epoch = _float_or_none(value)
    if epoch is not None:
        if abs(epoch) >= EPOCH_MS_THRESHOLD:
            epoch /= 1000.0
        try:
            return datetime.fromtimestamp(epoch, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    try:
        instant = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return instant if instant.tzinfo else instant.replace(tzinfo=timezone.utc)


def parse_snapshot(data: dict) -> Optional[AircraftSnapshot]:
    """
    Convert a position hash to an AircraftSnapshot.

    Unparsable numeric fields become None so the caller can skip the
    aircraft; an unparsable timestamp only clears observed_at. Returns
    None if the hash is empty or the position is out of range.
    """
    if not data:
        return None

    try:
        return AircraftSnapshot(
            callsign=(data.get("callsign") or "").strip() or None,
            altitude=_float_or_none(data.get("altitude")),
            latitude=_float_or_none(data.get("latitude")),
            longitude=_float_or_none(data.get("longitude")),
            on_ground=str(data.get("on_ground", "false")).lower() == "true",
            observed_at=_instant_or_none(data.get("timestamp")),
        )
    except ValidationError as e:
        logger.debug(f"Discarding invalid position hash for {data.get('callsign')}: {e}")
        return None


class RedisSnapshotSource:
    """Reads the latest aircraft snapshots from Redis."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def list_all_snapshots(self) -> List[AircraftSnapshot]:
        """Full scan of all position hashes."""
        snapshots = []
        for key in self.client.scan_iter(match=AIRCRAFT_POSITION_PATTERN, count=SCAN_BATCH):
            # Hash may expire between SCAN and HGETALL
            snapshot = parse_snapshot(self.client.hgetall(key))
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def get_snapshot(self, callsign: str) -> Optional[AircraftSnapshot]:
        """Latest snapshot for one aircraft, or None if absent."""
        key = AIRCRAFT_POSITION_KEY.format(callsign=callsign)
        return parse_snapshot(self.client.hgetall(key))
