"""
Redis alert store.

Each alert is written twice:
- alert:low-altitude:{id} with a fixed TTL (history)
- pushed onto the head of alerts:altitude:active, trimmed to the cap

Failures are logged and reported through the return value; nothing in
this module raises on a Redis error.
"""

import logging
from enum import Enum
from typing import List, Optional

import redis
from pydantic import ValidationError

from contracts.constants import (
    ACTIVE_ALERTS_KEY,
    ALERT_KEY_PATTERN,
    ALERT_KEY_PREFIX,
    DEFAULT_ACTIVE_ALERTS_CAP,
    DEFAULT_ALERT_TTL_S,
    DEFAULT_HISTORY_LIMIT,
)
from contracts.validation import AlertRecord
from monitor.metrics import STORE_FAILURES

logger = logging.getLogger(__name__)

SCAN_BATCH = 500
MGET_BATCH = 500


class PersistOutcome(str, Enum):
    STORED = "STORED"
    FAILED = "FAILED"


def alert_key(alert_id: str) -> str:
    return f"{ALERT_KEY_PREFIX}{alert_id}"


class RedisAlertStore:
    """Alert persistence with per-alert expiry and a capped active list."""

    def __init__(
        self,
        client: redis.Redis,
        ttl_s: int = DEFAULT_ALERT_TTL_S,
        cap: int = DEFAULT_ACTIVE_ALERTS_CAP,
    ):
        self.client = client
        self.ttl_s = ttl_s
        self.cap = cap

    def put(self, alert: AlertRecord) -> PersistOutcome:
        """Store alert under its own key and push it onto the active list."""
        payload = alert.model_dump_json()
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.set(alert_key(alert.id), payload, ex=self.ttl_s)
            pipe.lpush(ACTIVE_ALERTS_KEY, payload)
            pipe.ltrim(ACTIVE_ALERTS_KEY, 0, self.cap - 1)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Error storing altitude alert {alert.id}: {e}")
            STORE_FAILURES.labels(operation="put").inc()
            return PersistOutcome.FAILED
        return PersistOutcome.STORED

    @staticmethod
    def _decode(raw) -> Optional[AlertRecord]:
        try:
            return AlertRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.debug(f"Skipping undecodable alert entry: {e}")
            return None

    def list_active(self) -> List[AlertRecord]:
        """Capped active list, newest first."""
        try:
            raw_alerts = self.client.lrange(ACTIVE_ALERTS_KEY, 0, -1)
        except redis.RedisError as e:
            logger.error(f"Error getting active altitude alerts: {e}")
            STORE_FAILURES.labels(operation="list_active").inc()
            return []

        alerts = (self._decode(raw) for raw in raw_alerts)
        return [alert for alert in alerts if alert is not None]

    def _fetch(self, keys: List[str]) -> list:
        values = []
        for i in range(0, len(keys), MGET_BATCH):
            values.extend(self.client.mget(keys[i:i + MGET_BATCH]))
        return values

    def list_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> List[AlertRecord]:
        """
        Non-expired alerts, most recent first.

        Equal timestamps are ordered by key so the result is deterministic.
        """
        if limit < 1:
            return []

        try:
            keys = sorted(self.client.scan_iter(match=ALERT_KEY_PATTERN, count=SCAN_BATCH))
            values = self._fetch(keys)
        except redis.RedisError as e:
            logger.error(f"Error getting altitude alert history: {e}")
            STORE_FAILURES.labels(operation="list_history").inc()
            return []

        entries = []
        for key, raw in zip(keys, values):
            if raw is None:
                continue  # expired after SCAN
            alert = self._decode(raw)
            if alert is not None:
                entries.append((alert.timestamp, key, alert))

        entries.sort(key=lambda entry: (entry[0], entry[1]), reverse=True)
        return [alert for _, _, alert in entries[:limit]]
