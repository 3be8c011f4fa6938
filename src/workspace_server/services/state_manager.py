"""Redis-backed cache of the last observed sync state of each workspace resource."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from redis import Redis

LOGGER = logging.getLogger(__name__)


class SyncStatus(str, Enum):
    """Outcome of the most recent provisioning or reconciliation step for a key."""

    PROVISIONED = "PROVISIONED"
    PROVISIONING_FAILED = "PROVISIONING_FAILED"
    PRESENT = "PRESENT"
    REPAIRED = "REPAIRED"
    REPAIR_FAILED = "REPAIR_FAILED"
    DEPROVISION_FAILED = "DEPROVISION_FAILED"


class SyncStateManager:
    """Persist and retrieve per-key sync state using Redis."""

    STATUS_KEY_TEMPLATE = "workspace:{key}:status"
    HISTORY_KEY_TEMPLATE = "workspace:{key}:history"
    OBJECTS_KEY_TEMPLATE = "workspace:{key}:objects"

    def __init__(self, redis_client: Redis, history_limit: int = 50) -> None:
        self._redis = redis_client
        self._history_limit = history_limit

    @staticmethod
    def _status_key(key: str) -> str:
        return SyncStateManager.STATUS_KEY_TEMPLATE.format(key=key)

    @staticmethod
    def _history_key(key: str) -> str:
        return SyncStateManager.HISTORY_KEY_TEMPLATE.format(key=key)

    @staticmethod
    def _objects_key(key: str) -> str:
        return SyncStateManager.OBJECTS_KEY_TEMPLATE.format(key=key)

    def set_status(self, key: str, status: SyncStatus, detail: Optional[str] = None) -> None:
        """Persist the latest status.

        The bounded history only grows on transitions or when a detail is
        given, so a record seen present on every cycle does not flood it.
        """

        LOGGER.debug("Setting sync status", extra={"key": key, "status": status.value})
        previous = self._redis.get(self._status_key(key))
        if isinstance(previous, bytes):
            previous = previous.decode("utf-8")
        self._redis.set(self._status_key(key), status.value)
        if previous == status.value and not detail:
            return
        entry: Dict[str, Any] = {"status": status.value, "timestamp": datetime.now(timezone.utc).isoformat()}
        if detail:
            entry["detail"] = detail
        history_key = self._history_key(key)
        self._redis.lpush(history_key, json.dumps(entry))
        self._redis.ltrim(history_key, 0, self._history_limit - 1)

    def get_status(self, key: str) -> Optional[str]:
        value = self._redis.get(self._status_key(key))
        LOGGER.debug("Fetched sync status", extra={"key": key, "status": value})
        return value

    def get_history(self, key: str) -> List[Dict[str, Any]]:
        history: List[Dict[str, Any]] = []
        for raw in self._redis.lrange(self._history_key(key), 0, -1):
            try:
                history.append(json.loads(raw))
            except json.JSONDecodeError:
                LOGGER.warning("Stored history entry is invalid JSON", extra={"key": key})
        return history

    def set_objects(self, key: str, objects: Dict[str, str]) -> None:
        """Persist the per-object presence observed by the last verification."""

        self._redis.set(self._objects_key(key), json.dumps(objects))

    def get_objects(self, key: str) -> Optional[Dict[str, str]]:
        raw = self._redis.get(self._objects_key(key))
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Stored object presence is invalid JSON", extra={"key": key})
            return None

    def clear(self, key: str) -> None:
        """Remove all cached state related to a key."""

        keys = [self._status_key(key), self._history_key(key), self._objects_key(key)]
        LOGGER.debug("Clearing Redis keys", extra={"key": key, "keys": keys})
        self._redis.delete(*keys)


__all__ = ["SyncStateManager", "SyncStatus"]
