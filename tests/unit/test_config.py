"""
Unit tests for monitor configuration.
"""

import pytest

from monitor.config import ConfigurationError, MonitorConfig


def test_defaults():
    config = MonitorConfig()
    assert config.min_safe_altitude_ft == 1000
    assert config.check_interval_s == 5
    assert config.alert_ttl_s == 300
    assert config.active_alerts_cap == 100


def test_from_env_reads_overrides():
    config = MonitorConfig.from_env({
        "MIN_SAFE_ALTITUDE_FT": "1500",
        "ALTITUDE_CHECK_INTERVAL": "2.5",
        "ALERT_TTL_SECONDS": "60",
        "ACTIVE_ALERTS_CAP": "10",
        "CONTAINMENT_MAX_WORKERS": "4",
    })
    assert config.min_safe_altitude_ft == 1500
    assert config.check_interval_s == 2.5
    assert config.alert_ttl_s == 60
    assert config.active_alerts_cap == 10
    assert config.max_workers == 4


def test_from_env_empty_uses_defaults():
    assert MonitorConfig.from_env({}) == MonitorConfig()


@pytest.mark.parametrize("kwargs", [
    {"min_safe_altitude_ft": 0},
    {"min_safe_altitude_ft": -100},
    {"check_interval_s": 0},
    {"alert_ttl_s": 0},
    {"active_alerts_cap": 0},
    {"max_workers": 0},
])
def test_invalid_values_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        MonitorConfig(**kwargs)


def test_unparsable_env_value_rejected():
    with pytest.raises(ConfigurationError):
        MonitorConfig.from_env({"MIN_SAFE_ALTITUDE_FT": "low"})


def test_config_is_frozen():
    config = MonitorConfig()
    with pytest.raises(Exception):
        config.min_safe_altitude_ft = 10
