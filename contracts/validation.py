"""
Validation library for AltiGuard record contracts.

Provides Pydantic models for the records exchanged through Redis and the
HTTP API. All services should use these models to validate data before
processing.
"""

from typing import Optional, Literal
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator
from contracts.constants import LOW_ALTITUDE_MESSAGE


def _parse_instant(v):
    """Parse ISO 8601 datetime string and normalize to UTC."""
    if isinstance(v, str):
        v = datetime.fromisoformat(v.replace("Z", "+00:00"))
    if isinstance(v, datetime) and v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    return v


# ============================================================================
# Shared Components
# ============================================================================

class Position(BaseModel):
    """Geographic position."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90, description="Latitude in degrees (WGS84)")
    longitude: float = Field(ge=-180, le=180, description="Longitude in degrees (WGS84)")


# ============================================================================
# Aircraft Snapshot (read from the position cache)
# ============================================================================

class AircraftSnapshot(BaseModel):
    """Latest known state of one aircraft. Any field may be missing upstream."""
    callsign: Optional[str] = None
    altitude: Optional[float] = Field(None, description="Altitude in feet")
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    on_ground: bool = False
    observed_at: Optional[datetime] = None

    @field_validator("observed_at", mode="before")
    @classmethod
    def parse_observed_at(cls, v):
        return _parse_instant(v)

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# ============================================================================
# Airport Zones
# ============================================================================

class Zone(BaseModel):
    """Circular geofence around a centroid, owned by an airport."""
    model_config = ConfigDict(frozen=True)

    name: str
    airport: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_m: float = Field(gt=0, description="Zone radius in meters")


# ============================================================================
# Alert Record (persisted)
# ============================================================================

class AlertRecord(BaseModel):
    """
    Low-altitude alert as persisted in Redis.

    Immutable once created. The id is the callsign joined with the
    creation instant in epoch milliseconds.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    callsign: str = Field(min_length=1)
    altitude: float = Field(description="Altitude in feet at detection")
    position: Position
    severity: Literal["CRITICAL", "HIGH", "MEDIUM"]
    message: str = LOW_ALTITUDE_MESSAGE
    timestamp: datetime

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v):
        """Parse ISO 8601 datetime string."""
        return _parse_instant(v)


# ============================================================================
# Altitude Status (derived, never persisted)
# ============================================================================

class AltitudeStatus(BaseModel):
    """Point-in-time safety view of one aircraft."""
    callsign: str
    altitude: float
    position: Position
    in_airport_zone: bool
    zone: Optional[str] = None
    zone_check_degraded: bool = False
    is_safe: bool
    min_safe_altitude: float
    timestamp: datetime


# ============================================================================
# Validation Functions
# ============================================================================

def validate_alert_record(data: dict) -> tuple[bool, Optional[AlertRecord], Optional[str]]:
    """
    Validate AlertRecord.

    Returns:
        (is_valid, record_or_none, error_message_or_none)
    """
    try:
        record = AlertRecord(**data)
        return True, record, None
    except Exception as e:
        return False, None, str(e)


def validate_zone(data: dict) -> tuple[bool, Optional[Zone], Optional[str]]:
    """
    Validate Zone.

    Returns:
        (is_valid, zone_or_none, error_message_or_none)
    """
    try:
        zone = Zone(**data)
        return True, zone, None
    except Exception as e:
        return False, None, str(e)


def validate_altitude_status(data: dict) -> tuple[bool, Optional[AltitudeStatus], Optional[str]]:
    """
    Validate AltitudeStatus.

    Returns:
        (is_valid, status_or_none, error_message_or_none)
    """
    try:
        status = AltitudeStatus(**data)
        return True, status, None
    except Exception as e:
        return False, None, str(e)
