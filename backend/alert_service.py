"""
Read path for low-altitude alerts and per-aircraft altitude status.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from contracts.constants import DEFAULT_HISTORY_LIMIT
from contracts.validation import AlertRecord, AltitudeStatus, Position
from monitor.alert_store import RedisAlertStore
from monitor.altitude_monitor import ContainmentOracle, SnapshotSource, utc_now

logger = logging.getLogger(__name__)


class AlertQueryService:
    """Exposes active alerts, alert history and on-demand altitude status."""

    def __init__(
        self,
        snapshots: SnapshotSource,
        oracle: ContainmentOracle,
        store: RedisAlertStore,
        min_safe_altitude_ft: float,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.snapshots = snapshots
        self.oracle = oracle
        self.store = store
        self.min_safe_altitude_ft = min_safe_altitude_ft
        self._clock = clock

    def get_active_alerts(self) -> List[AlertRecord]:
        return self.store.list_active()

    def get_alert_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[AlertRecord]:
        return self.store.list_history(limit)

    def get_aircraft_altitude_status(self, callsign: str) -> Optional[AltitudeStatus]:
        """
        Compute the current safety view of one aircraft.

        Returns:
            AltitudeStatus, or None if the aircraft has no snapshot with
            altitude and position
        """
        snapshot = self.snapshots.get_snapshot(callsign)
        if snapshot is None or snapshot.altitude is None or not snapshot.has_position:
            return None

        containment = self.oracle.contains(snapshot.latitude, snapshot.longitude)
        return AltitudeStatus(
            callsign=callsign,
            altitude=snapshot.altitude,
            position=Position(latitude=snapshot.latitude, longitude=snapshot.longitude),
            in_airport_zone=containment.inside,
            zone=containment.zone,
            zone_check_degraded=containment.degraded,
            is_safe=snapshot.altitude >= self.min_safe_altitude_ft or containment.inside,
            min_safe_altitude=self.min_safe_altitude_ft,
            timestamp=self._clock(),
        )
