"""TTL (Time To Live) tiers for cached entities.

Callers pick a tier by intent instead of inventing numeric literals, so
expiry policy stays auditable in one place.
"""

from enum import IntEnum


class CacheTTL(IntEnum):
    """
    Cache TTL tiers, in seconds.

    Members are ints, so they can be passed anywhere a TTL is expected:
    - SHORT: volatile lookups (search results, per-request aggregates)
    - SESSION: authenticated session data refreshed on activity
    - MEDIUM: expensive aggregates and bookings in flight
    - LONG: entity records that rarely change
    - DAY: reference data (pricing rules, system config)
    - WEEK: long-lived "remember me" sessions
    """

    SHORT = 300  # 5 minutes
    SESSION = 900  # 15 minutes
    MEDIUM = 1800  # 30 minutes
    LONG = 3600  # 1 hour
    DAY = 86400  # 24 hours
    WEEK = 604800  # 7 days
