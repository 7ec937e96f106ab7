"""
Severity classification for low-altitude alerts.
"""

from enum import Enum

from contracts.constants import (
    CRITICAL_BELOW_FT,
    HIGH_BELOW_FT,
    SEVERITY_CRITICAL,
    SEVERITY_HIGH,
    SEVERITY_MEDIUM,
)


class Severity(str, Enum):
    CRITICAL = SEVERITY_CRITICAL
    HIGH = SEVERITY_HIGH
    MEDIUM = SEVERITY_MEDIUM


def classify_severity(altitude_ft: float) -> Severity:
    """Map altitude in feet to a severity tier.

    Only meaningful below the safety threshold; MEDIUM is reachable only
    when the threshold is above 750 ft.
    """
    if altitude_ft < CRITICAL_BELOW_FT:
        return Severity.CRITICAL
    if altitude_ft < HIGH_BELOW_FT:
        return Severity.HIGH
    return Severity.MEDIUM
