"""
Test support for AltiGuard tests.

FakeRedis implements the subset of redis-py used by the snapshot source
and the alert store, with a switch to make every call fail.
"""

import fnmatch
from datetime import datetime, timezone

import redis

from contracts.validation import Zone


FIXED_NOW = datetime(2026, 1, 9, 12, 0, 0, 123456, tzinfo=timezone.utc)

# RWY-09: 2000 m circle; IN_ZONE is ~560 m from its centroid
RWY_09 = Zone(name="RWY-09", airport="Test Field", latitude=40.0, longitude=-74.0, radius_m=2000)
IN_ZONE = (40.005, -74.0)
OUTSIDE = (40.5, -73.0)


class FakePipeline:
    """Queues commands and applies them on execute()."""

    def __init__(self, client: "FakeRedis"):
        self.client = client
        self.ops = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.ops.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        self.client._check()
        return [getattr(self.client, name)(*args, **kwargs) for name, args, kwargs in self.ops]


class FakeRedis:
    """In-memory stand-in for redis.Redis(decode_responses=True)."""

    def __init__(self):
        self.strings = {}
        self.ttls = {}
        self.lists = {}
        self.hashes = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("Error 111 connecting to redis:6379. Connection refused.")

    # Strings
    def set(self, key, value, ex=None):
        self._check()
        self.strings[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        self._check()
        return self.strings.get(key)

    def mget(self, keys):
        self._check()
        return [self.strings.get(key) for key in keys]

    def expire_now(self, key):
        """Simulate TTL expiry of a key."""
        self.strings.pop(key, None)
        self.ttls.pop(key, None)

    # Lists
    def lpush(self, key, *values):
        self._check()
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    def ltrim(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        self.lists[key] = items[start:] if end == -1 else items[start:end + 1]
        return True

    def lrange(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        return list(items[start:] if end == -1 else items[start:end + 1])

    # Hashes
    def hset(self, key, mapping):
        self._check()
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in mapping.items()})
        return len(mapping)

    def hgetall(self, key):
        self._check()
        return dict(self.hashes.get(key, {}))

    # Keyspace
    def scan_iter(self, match=None, count=None):
        self._check()
        keys = list(self.strings) + list(self.lists) + list(self.hashes)
        for key in keys:
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    def pipeline(self, transaction=True):
        return FakePipeline(self)


def put_position(client, callsign, altitude, position, on_ground=False, **extra):
    """Write an aircraft position hash the way the ingestion process does."""
    lat, lon = position
    mapping = {
        "callsign": callsign,
        "altitude": altitude,
        "latitude": lat,
        "longitude": lon,
        "on_ground": "true" if on_ground else "false",
    }
    mapping.update(extra)
    client.hset(f"aircraft:{callsign}:position", mapping=mapping)


