"""
Shared constants for AltiGuard services.

This module provides a single source of truth for:
- Redis key layout
- Severity tiers and alert wording
- Default thresholds and limits

All services should import from this module to ensure consistency.
"""

# Redis Keys
AIRCRAFT_POSITION_KEY = "aircraft:{callsign}:position"
AIRCRAFT_POSITION_PATTERN = "aircraft:*:position"
ALERT_KEY_PREFIX = "alert:low-altitude:"
ALERT_KEY_PATTERN = ALERT_KEY_PREFIX + "*"
ACTIVE_ALERTS_KEY = "alerts:altitude:active"

# Severity Levels
SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_HIGH = "HIGH"
SEVERITY_MEDIUM = "MEDIUM"

# Severity boundaries (feet)
CRITICAL_BELOW_FT = 500.0
HIGH_BELOW_FT = 750.0

# Alerting
LOW_ALTITUDE_MESSAGE = "Aircraft flying below safe altitude outside airport zone"
DEFAULT_MIN_SAFE_ALTITUDE_FT = 1000.0
DEFAULT_CHECK_INTERVAL_S = 5.0
DEFAULT_ALERT_TTL_S = 300
DEFAULT_ACTIVE_ALERTS_CAP = 100
DEFAULT_HISTORY_LIMIT = 50
