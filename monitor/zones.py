"""
Airport zone containment for the low-altitude rule.

Two indexes answer the same question, "is this point inside any zone":
- PostgisZoneIndex queries the airport_zones table (primary)
- LocalZoneIndex checks an in-memory zone list (fallback)

ZoneContainmentOracle prefers the primary and answers from the fallback
whenever the primary is unavailable, so a containment check always
yields a result.
"""

import json
import logging
import math
import threading
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

import psycopg
from shapely.geometry import Point
from shapely.strtree import STRtree

from contracts.validation import Zone, validate_zone
from monitor.config import DATABASE_URL, ZONE_QUERY_TIMEOUT_MS, ZONES_FILE
from monitor.metrics import ZONE_FALLBACKS

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE_LAT = 111320.0


@dataclass(frozen=True)
class ContainmentResult:
    """Answer of a containment check. degraded marks a fallback answer."""
    inside: bool
    zone: Optional[str] = None
    airport: Optional[str] = None
    degraded: bool = False

    @classmethod
    def from_zone(cls, zone: Optional[Zone], degraded: bool = False) -> "ContainmentResult":
        if zone is None:
            return cls(inside=False, degraded=degraded)
        return cls(inside=True, zone=zone.name, airport=zone.airport, degraded=degraded)


class ZoneIndex(Protocol):
    def find_zone(self, lat: float, lon: float) -> Optional[Zone]:
        ...


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate distance in meters between two points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def load_zones_geojson(path: str) -> List[Zone]:
    """Load zones from a GeoJSON FeatureCollection of Point features."""
    with open(path) as f:
        data = json.load(f)

    zones = []
    for feature in data.get("features", []):
        geometry = feature.get("geometry") or {}
        if geometry.get("type") != "Point":
            logger.warning(f"Skipping non-point zone feature: {geometry.get('type')}")
            continue

        lon, lat = geometry["coordinates"][:2]
        props = feature.get("properties", {})
        is_valid, zone, error = validate_zone({
            "name": props.get("name"),
            "airport": props.get("airport"),
            "latitude": lat,
            "longitude": lon,
            "radius_m": props.get("radius_m"),
        })
        if not is_valid:
            logger.warning(f"Skipping invalid zone {props.get('name')}: {error}")
            continue
        zones.append(zone)

    return zones


class LocalZoneIndex:
    """
    In-memory zone lookup.

    An STRtree over degree-buffered circles narrows the candidates, then an
    exact haversine distance decides containment. Circles that cross the
    antimeridian get a second envelope shifted by 360 degrees.
    """

    def __init__(self, zones: Iterable[Zone] = ()):
        self._lock = threading.Lock()
        self._zones: List[Zone] = []
        self._owners: List[int] = []
        self._tree: Optional[STRtree] = None
        self.replace(zones)

    @classmethod
    def from_geojson(cls, path: str = ZONES_FILE) -> "LocalZoneIndex":
        return cls(load_zones_geojson(path))

    @staticmethod
    def _envelopes(zone: Zone):
        # Longitude degrees shrink with latitude; the lon-scaled radius bounds both axes.
        cos_lat = max(math.cos(math.radians(zone.latitude)), 0.01)
        radius_deg = zone.radius_m / (METERS_PER_DEGREE_LAT * cos_lat) * 1.1

        envelopes = [Point(zone.longitude, zone.latitude).buffer(radius_deg)]
        if zone.longitude - radius_deg < -180:
            envelopes.append(Point(zone.longitude + 360, zone.latitude).buffer(radius_deg))
        if zone.longitude + radius_deg > 180:
            envelopes.append(Point(zone.longitude - 360, zone.latitude).buffer(radius_deg))
        return envelopes

    def replace(self, zones: Iterable[Zone]):
        """Swap in a new zone list."""
        zones = list(zones)
        geometries, owners = [], []
        for i, zone in enumerate(zones):
            for envelope in self._envelopes(zone):
                geometries.append(envelope)
                owners.append(i)

        tree = STRtree(geometries) if geometries else None
        with self._lock:
            self._zones = zones
            self._owners = owners
            self._tree = tree

    def zones(self) -> List[Zone]:
        with self._lock:
            return list(self._zones)

    def size(self) -> int:
        with self._lock:
            return len(self._zones)

    def find_zone(self, lat: float, lon: float) -> Optional[Zone]:
        with self._lock:
            zones, owners, tree = self._zones, self._owners, self._tree

        if tree is None:
            return None

        for i in tree.query(Point(lon, lat)):
            zone = zones[owners[int(i)]]
            if haversine_m(lat, lon, zone.latitude, zone.longitude) < zone.radius_m:
                return zone

        return None


class PostgisZoneIndex:
    """Zone lookup against the airport_zones PostGIS table."""

    CONTAINMENT_SQL = """
        SELECT name, airport, ST_Y(centroid::geometry), ST_X(centroid::geometry), radius_m
        FROM airport_zones
        WHERE ST_DWithin(centroid, ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography, radius_m)
        ORDER BY ST_Distance(centroid, ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography)
        LIMIT 1
    """

    LIST_SQL = """
        SELECT name, airport, ST_Y(centroid::geometry), ST_X(centroid::geometry), radius_m
        FROM airport_zones
        ORDER BY airport, name
    """

    def __init__(self, database_url: str = DATABASE_URL, timeout_ms: int = ZONE_QUERY_TIMEOUT_MS):
        self.database_url = database_url
        self.timeout_ms = timeout_ms
        # One connection per worker thread
        self._local = threading.local()
        self._connections_lock = threading.Lock()
        self._connections: List[psycopg.Connection] = []

    def _connection(self) -> psycopg.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None or conn.closed:
            conn = psycopg.connect(
                self.database_url,
                connect_timeout=max(1, math.ceil(self.timeout_ms / 1000)),
                options=f"-c statement_timeout={self.timeout_ms}",
                autocommit=True,
            )
            self._local.conn = conn
            with self._connections_lock:
                self._connections.append(conn)
        return conn

    def _discard_connection(self):
        conn = getattr(self._local, "conn", None)
        self._local.conn = None
        if conn is None:
            return
        with self._connections_lock:
            if conn in self._connections:
                self._connections.remove(conn)
        if not conn.closed:
            conn.close()

    @staticmethod
    def _row_to_zone(row) -> Zone:
        name, airport, lat, lon, radius_m = row
        return Zone(name=name, airport=airport, latitude=lat, longitude=lon, radius_m=radius_m)

    def find_zone(self, lat: float, lon: float) -> Optional[Zone]:
        try:
            with self._connection().cursor() as cur:
                cur.execute(self.CONTAINMENT_SQL, (lon, lat, lon, lat))
                row = cur.fetchone()
        except psycopg.Error:
            self._discard_connection()
            raise
        return self._row_to_zone(row) if row else None

    def list_zones(self) -> List[Zone]:
        try:
            with self._connection().cursor() as cur:
                cur.execute(self.LIST_SQL)
                rows = cur.fetchall()
        except psycopg.Error:
            self._discard_connection()
            raise
        return [self._row_to_zone(row) for row in rows]

    def close(self):
        """Close the connections opened by every worker thread."""
        with self._connections_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            if not conn.closed:
                conn.close()
        logger.info(f"Closed {len(connections)} zone database connections")


class ZoneContainmentOracle:
    """Containment check that never raises: primary index, local fallback."""

    def __init__(self, primary: Optional[ZoneIndex], fallback: LocalZoneIndex):
        self.primary = primary
        self.fallback = fallback

    def contains(self, lat: float, lon: float) -> ContainmentResult:
        """Check whether (lat, lon) lies inside any zone."""
        if self.primary is not None:
            try:
                return ContainmentResult.from_zone(self.primary.find_zone(lat, lon))
            except Exception as e:
                logger.warning(f"Primary zone query failed, using fallback index: {e}")
                ZONE_FALLBACKS.inc()

        return ContainmentResult.from_zone(self.fallback.find_zone(lat, lon), degraded=True)

    def refresh_fallback(self) -> int:
        """
        Copy the primary's zone list into the fallback index.

        Returns:
            Number of zones now held by the fallback index
        """
        list_zones = getattr(self.primary, "list_zones", None)
        if list_zones is None:
            return self.fallback.size()

        try:
            zones = list_zones()
        except Exception as e:
            logger.warning(f"Could not refresh fallback zones, keeping {self.fallback.size()}: {e}")
            return self.fallback.size()

        if not zones:
            logger.warning("Primary zone table is empty, keeping current fallback zones")
            return self.fallback.size()

        self.fallback.replace(zones)
        logger.info(f"Fallback zone index refreshed with {len(zones)} zones")
        return len(zones)

    def close(self):
        """Release the primary index's connections."""
        close_primary = getattr(self.primary, "close", None)
        if close_primary is not None:
            close_primary()
