"""
Unit tests for altitude severity classification.
"""

import pytest

from monitor.severity import Severity, classify_severity


@pytest.mark.parametrize("altitude, expected", [
    (0.0, Severity.CRITICAL),
    (450.0, Severity.CRITICAL),
    (499.9, Severity.CRITICAL),
    (500.0, Severity.HIGH),
    (749.9, Severity.HIGH),
    (750.0, Severity.MEDIUM),
    (999.0, Severity.MEDIUM),
])
def test_severity_boundaries(altitude, expected):
    """Boundaries at 500 and 750 ft are exact."""
    assert classify_severity(altitude) is expected


def test_negative_altitude_is_critical():
    """Below-sea-level readings still classify."""
    assert classify_severity(-50.0) is Severity.CRITICAL


def test_severity_values_match_record_contract():
    """Enum values are the strings stored in alert records."""
    assert {s.value for s in Severity} == {"CRITICAL", "HIGH", "MEDIUM"}
