"""
Low-altitude monitor.

Every cycle:
1. Read all aircraft snapshots
2. Skip aircraft on the ground or missing callsign/altitude/position
3. For aircraft below the safety threshold, check airport zone containment
4. Raise an alert for each one outside every zone
5. Persist the alerts and return them

An alert is raised on every cycle the condition holds; there is no
suppression while a hazard persists.
"""

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Protocol

from contracts.constants import LOW_ALTITUDE_MESSAGE
from contracts.validation import AircraftSnapshot, AlertRecord, Position
from monitor.alert_store import PersistOutcome
from monitor.config import MonitorConfig
from monitor.metrics import AIRCRAFT_EVALUATED, ALERTS_RAISED, CYCLE_DURATION, CYCLES
from monitor.severity import classify_severity
from monitor.zones import ContainmentResult

logger = logging.getLogger(__name__)


class MonitorState(str, Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


class SnapshotSource(Protocol):
    def list_all_snapshots(self) -> List[AircraftSnapshot]:
        ...

    def get_snapshot(self, callsign: str) -> Optional[AircraftSnapshot]:
        ...


class ContainmentOracle(Protocol):
    def contains(self, lat: float, lon: float) -> ContainmentResult:
        ...


class AlertSink(Protocol):
    def put(self, alert: AlertRecord) -> PersistOutcome:
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_alert(snapshot: AircraftSnapshot, detected_at: datetime) -> AlertRecord:
    """Create the alert record for one hazardous snapshot."""
    # Millisecond resolution, matching the id suffix
    detected_at = detected_at.replace(microsecond=detected_at.microsecond // 1000 * 1000)
    epoch_ms = int(detected_at.timestamp() * 1000)
    return AlertRecord(
        id=f"{snapshot.callsign}-{epoch_ms}",
        callsign=snapshot.callsign,
        altitude=snapshot.altitude,
        position=Position(latitude=snapshot.latitude, longitude=snapshot.longitude),
        severity=classify_severity(snapshot.altitude).value,
        message=LOW_ALTITUDE_MESSAGE,
        timestamp=detected_at,
    )


def is_airborne(snapshot: AircraftSnapshot) -> bool:
    """Snapshot has what the rule needs and is not on the ground."""
    return (
        bool(snapshot.callsign)
        and snapshot.altitude is not None
        and snapshot.has_position
        and not snapshot.on_ground
    )


class AltitudeMonitor:
    """
    Periodic low-altitude check.

    start() runs an immediate cycle and then one every check_interval_s.
    Calling start() while RUNNING cancels the current schedule and starts a
    fresh one (new immediate cycle, new timer). stop() prevents further
    cycles; a cycle already in progress runs to completion.
    """

    def __init__(
        self,
        snapshots: SnapshotSource,
        oracle: ContainmentOracle,
        store: AlertSink,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.snapshots = snapshots
        self.oracle = oracle
        self.store = store
        self.config = config or MonitorConfig()
        self._clock = clock

        self._state = MonitorState.STOPPED
        self._control_lock = threading.Lock()
        self._cycle_lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="altitude-check",
        )

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def min_safe_altitude_ft(self) -> float:
        return self.config.min_safe_altitude_ft

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def start(self):
        """Start continuous altitude monitoring."""
        with self._control_lock:
            if self._state is MonitorState.RUNNING:
                logger.info("Altitude monitor already running, restarting schedule")
                self._cancel_schedule()

            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._schedule_loop,
                args=(stop_event,),
                name="altitude-monitor",
                daemon=True,
            )
            self._state = MonitorState.RUNNING
            self._thread.start()

        logger.info(f"Starting altitude monitoring (check every {self.config.check_interval_s}s)")

    def stop(self, timeout: float = 5.0):
        """Stop monitoring. No-op if not running."""
        with self._control_lock:
            if self._state is MonitorState.STOPPED:
                return
            thread = self._thread
            self._cancel_schedule()
            self._state = MonitorState.STOPPED

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("Altitude monitoring stopped")

    def close(self):
        """Stop monitoring, release worker threads and the oracle's connections."""
        self.stop()
        self._executor.shutdown(wait=True)
        close_oracle = getattr(self.oracle, "close", None)
        if close_oracle is not None:
            close_oracle()

    def _cancel_schedule(self):
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._thread = None

    def _schedule_loop(self, stop_event: threading.Event):
        interval = self.config.check_interval_s
        next_run = time.monotonic()

        while not stop_event.is_set():
            self.check()

            next_run += interval
            now = time.monotonic()
            if next_run < now:
                # Cycle overran; skip the ticks it covered
                next_run += math.ceil((now - next_run) / interval) * interval
            if stop_event.wait(next_run - now):
                break

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def check(self) -> List[AlertRecord]:
        """
        Run one detection cycle.

        Never raises: any failure is logged and the cycle yields no alerts.
        At most one cycle runs at a time.
        """
        with self._cycle_lock:
            started = time.monotonic()
            try:
                alerts = self._run_cycle()
            except Exception as e:
                logger.error(f"Error checking low-altitude aircraft: {e}", exc_info=True)
                CYCLES.labels(outcome="failed").inc()
                return []
            finally:
                CYCLE_DURATION.observe(time.monotonic() - started)

        CYCLES.labels(outcome="ok").inc()
        if alerts:
            logger.info(f"{len(alerts)} low-altitude alert(s) detected")
        return alerts

    def _run_cycle(self) -> List[AlertRecord]:
        airborne = [s for s in self.snapshots.list_all_snapshots() if is_airborne(s)]
        AIRCRAFT_EVALUATED.set(len(airborne))

        threshold = self.config.min_safe_altitude_ft
        below = [s for s in airborne if s.altitude < threshold]
        if not below:
            return []

        containment = list(self._executor.map(
            lambda s: self.oracle.contains(s.latitude, s.longitude), below
        ))

        detected_at = self._clock()
        alerts = [
            build_alert(snapshot, detected_at)
            for snapshot, result in zip(below, containment)
            if not result.inside
        ]
        if not alerts:
            return []

        outcomes = list(self._executor.map(self.store.put, alerts))
        failed = sum(1 for outcome in outcomes if outcome is PersistOutcome.FAILED)
        if failed:
            logger.warning(f"{failed} of {len(alerts)} altitude alert(s) could not be stored")

        for alert in alerts:
            ALERTS_RAISED.labels(severity=alert.severity).inc()

        return alerts
