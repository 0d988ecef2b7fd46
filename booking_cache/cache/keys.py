"""Cache key construction for platform entities.

This module provides the CacheKeys class, the single place where the
string format of every cached entity key is defined.
"""

import hashlib
import json
from typing import Any, Dict, Optional


class CacheKeys:
    """
    Canonical cache keys for platform entities.

    Keys are logical: the cache manager prepends the namespace prefix.
    Entity keys follow the pattern {entity}:{identifier}; derived views of
    an entity (filtered lists, stats) extend the entity key so they can be
    invalidated together with derived_pattern().
    """

    @staticmethod
    def user(user_id: str) -> str:
        return f"user:{user_id}"

    @staticmethod
    def user_profile(user_id: str) -> str:
        return f"profile:{user_id}"

    @staticmethod
    def user_session(session_token: str) -> str:
        return f"session:{session_token}"

    @staticmethod
    def vehicle(vehicle_id: str) -> str:
        return f"vehicle:{vehicle_id}"

    @staticmethod
    def booking(booking_id: str) -> str:
        return f"booking:{booking_id}"

    @staticmethod
    def pricing_rules() -> str:
        return "pricing:rules"

    @staticmethod
    def blog_post(slug: str) -> str:
        return f"blog:{slug}"

    @staticmethod
    def system_config() -> str:
        return "system:config"

    @staticmethod
    def rate_limit(identifier: str) -> str:
        return f"rate_limit:{identifier}"

    @staticmethod
    def params_hash(params: Dict[str, Any]) -> str:
        """
        Hash query parameters into a short deterministic token.

        Args:
            params: Filter/query parameters (JSON-serializable)

        Returns:
            First 12 hex characters of the MD5 of the sorted JSON

        Example:
            >>> len(CacheKeys.params_hash({"page": 1, "status": "active"}))
            12
        """
        params_str = json.dumps(params, sort_keys=True, default=str)
        return hashlib.md5(params_str.encode()).hexdigest()[:12]

    @staticmethod
    def derived(
        base_key: str, *parts: Any, params: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Build the key of a view derived from an entity key.

        Args:
            base_key: Entity key built by one of the methods above
            *parts: Extra qualifiers (flags, day counts, ...)
            params: Optional filter dictionary, hashed into the key

        Returns:
            Key of the form {base_key}:{part}...[:{params_hash}]

        Example:
            >>> CacheKeys.derived(CacheKeys.vehicle("v1"), "alerts")
            'vehicle:v1:alerts'
        """
        segments = [base_key, *(str(part) for part in parts)]
        if params is not None:
            segments.append(CacheKeys.params_hash(params))
        return ":".join(segments)

    @staticmethod
    def derived_pattern(base_key: str) -> str:
        """
        Glob pattern covering every derived view of an entity key.

        Example:
            >>> CacheKeys.derived_pattern(CacheKeys.vehicle("v1"))
            'vehicle:v1:*'
        """
        return f"{base_key}:*"
