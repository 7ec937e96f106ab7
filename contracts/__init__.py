"""
AltiGuard Contracts Package

Provides shared constants and validation for record contracts.
"""

from contracts.constants import *
from contracts.validation import (
    Position,
    AircraftSnapshot,
    Zone,
    AlertRecord,
    AltitudeStatus,
    validate_alert_record,
    validate_zone,
    validate_altitude_status,
)

__all__ = [
    # Constants
    "AIRCRAFT_POSITION_KEY",
    "AIRCRAFT_POSITION_PATTERN",
    "ALERT_KEY_PREFIX",
    "ALERT_KEY_PATTERN",
    "ACTIVE_ALERTS_KEY",
    "SEVERITY_CRITICAL",
    "SEVERITY_HIGH",
    "SEVERITY_MEDIUM",
    "LOW_ALTITUDE_MESSAGE",
    # Models
    "Position",
    "AircraftSnapshot",
    "Zone",
    "AlertRecord",
    "AltitudeStatus",
    # Validators
    "validate_alert_record",
    "validate_zone",
    "validate_altitude_status",
]
