#!/usr/bin/env python3
"""
Initialize the airport_zones table and load zones from GeoJSON.

Creates:
- airport_zones: one row per circular zone (centroid geography + radius)
- a GiST index on centroid for ST_DWithin lookups

Zones are upserted by name, so the script can be re-run after editing
the zones file.
"""

import os
import sys
import logging
import time
from typing import Optional

import psycopg

from monitor.config import DATABASE_URL, ZONES_FILE
from monitor.zones import load_zones_geojson

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SCHEMA_SQL = """
    CREATE EXTENSION IF NOT EXISTS postgis;
    CREATE TABLE IF NOT EXISTS airport_zones (
        name TEXT PRIMARY KEY,
        airport TEXT NOT NULL,
        centroid GEOGRAPHY(Point, 4326) NOT NULL,
        radius_m DOUBLE PRECISION NOT NULL CHECK (radius_m > 0)
    );
    CREATE INDEX IF NOT EXISTS airport_zones_centroid_idx
        ON airport_zones USING GIST (centroid);
"""

UPSERT_SQL = """
    INSERT INTO airport_zones (name, airport, centroid, radius_m)
    VALUES (%s, %s, ST_SetSRID(ST_MakePoint(%s, %s), 4326)::geography, %s)
    ON CONFLICT (name) DO UPDATE SET
        airport = EXCLUDED.airport,
        centroid = EXCLUDED.centroid,
        radius_m = EXCLUDED.radius_m
"""


def wait_for_database(max_retries: int = 30, retry_delay: int = 2) -> Optional[psycopg.Connection]:
    """Wait for database to be available."""
    logger.info("Waiting for database...")

    for i in range(max_retries):
        try:
            conn = psycopg.connect(DATABASE_URL, connect_timeout=5)
            logger.info("Database is available")
            return conn
        except psycopg.OperationalError as e:
            if i < max_retries - 1:
                logger.debug(f"Database not ready (attempt {i+1}/{max_retries}): {e}")
                time.sleep(retry_delay)
            else:
                logger.error(f"Database not available after {max_retries} attempts: {e}")

    return None


def load_zones(conn: psycopg.Connection, path: str) -> int:
    """Create schema and upsert zones. Returns number of zones written."""
    zones = load_zones_geojson(path)

    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
        for zone in zones:
            cur.execute(UPSERT_SQL, (
                zone.name,
                zone.airport,
                zone.longitude, zone.latitude,
                zone.radius_m
            ))
    conn.commit()
    return len(zones)


def main():
    """Main entry point."""
    logger.info("=" * 50)
    logger.info("AltiGuard Zone Initialization")
    logger.info("=" * 50)

    path = sys.argv[1] if len(sys.argv) > 1 else ZONES_FILE
    if not os.path.exists(path):
        logger.error(f"Zones file not found: {path}")
        sys.exit(1)

    conn = wait_for_database()
    if conn is None:
        logger.error("Failed to connect to database. Exiting.")
        sys.exit(1)

    try:
        count = load_zones(conn, path)
    except psycopg.Error as e:
        logger.error(f"Failed to load zones: {e}")
        sys.exit(1)
    finally:
        conn.close()

    logger.info(f"Loaded {count} zones from {path}")
    logger.info("=" * 50)
    logger.info("Zone initialization complete")
    logger.info("=" * 50)


if __name__ == "__main__":
    main()
