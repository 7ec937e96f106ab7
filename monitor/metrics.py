"""
Prometheus metrics for the altitude monitor.
"""

from prometheus_client import Counter, Gauge, Histogram

CYCLES = Counter(
    'altitude_monitor_cycles_total',
    'Monitor cycles by outcome',
    ['outcome']  # ok, failed
)

CYCLE_DURATION = Histogram(
    'altitude_monitor_cycle_duration_seconds',
    'Wall time of one monitor cycle',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

ALERTS_RAISED = Counter(
    'altitude_alerts_raised_total',
    'Low-altitude alerts raised',
    ['severity']
)

AIRCRAFT_EVALUATED = Gauge(
    'altitude_aircraft_evaluated',
    'Airborne aircraft evaluated in the last cycle'
)

ZONE_FALLBACKS = Counter(
    'altitude_zone_fallbacks_total',
    'Containment checks answered by the fallback zone index'
)

STORE_FAILURES = Counter(
    'altitude_alert_store_failures_total',
    'Alert store operations that failed',
    ['operation']  # put, list_active, list_history
)
