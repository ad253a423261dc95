"""Durable per-member vote history (which positions a member has voted on)."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis

from .config import settings

logger = logging.getLogger(__name__)


class HistoryStoreError(Exception):
    """Raised when vote history cannot be read or written."""
    pass


def history_key(member_id: str, prefix: Optional[str] = None) -> str:
    """Storage key for a member's vote history."""
    return f"{prefix or settings.VOTE_HISTORY_KEY_PREFIX}_{member_id}"


def encode_history(voted_positions: Dict[str, bool]) -> str:
    return json.dumps({
        "votedPositions": dict(voted_positions),
        "lastUpdated": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    })


def decode_history(raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise HistoryStoreError(f"Malformed vote history: {e}")
    if not isinstance(data, dict):
        raise HistoryStoreError(f"Malformed vote history: expected object, got {type(data).__name__}")
    return data


class RedisHistoryStore:
    """Vote history persisted as one JSON document per member in Redis."""

    def __init__(self, client: Optional[redis.Redis] = None, key_prefix: Optional[str] = None):
        """
        Initialize the store.

        Args:
            client: Existing Redis client; a pooled client is built from settings when omitted
            key_prefix: Key prefix (defaults to VOTE_HISTORY_KEY_PREFIX)
        """
        self.pool = None
        if client is None:
            self.pool = redis.ConnectionPool(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                db=settings.REDIS_DB,
                password=settings.REDIS_PASSWORD,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
                health_check_interval=30
            )
            client = redis.Redis(connection_pool=self.pool)
        self.client = client
        self.key_prefix = key_prefix or settings.VOTE_HISTORY_KEY_PREFIX

    def ping(self) -> bool:
        try:
            self.client.ping()
            logger.info("Redis connection established successfully")
            return True
        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            return False

    def load(self, member_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a member's vote history.

        Args:
            member_id: Member identifier

        Returns:
            The stored document, or None when the member has no history

        Raises:
            HistoryStoreError: On Redis errors or malformed documents
        """
        key = history_key(member_id, self.key_prefix)
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.error(f"Redis error loading vote history for {member_id}: {e}")
            raise HistoryStoreError(str(e))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return decode_history(raw)

    def save(self, member_id: str, voted_positions: Dict[str, bool]) -> None:
        key = history_key(member_id, self.key_prefix)
        try:
            self.client.set(key, encode_history(voted_positions))
            logger.debug(f"Vote history saved for {member_id}: {sorted(voted_positions)}")
        except redis.RedisError as e:
            logger.error(f"Redis error saving vote history for {member_id}: {e}")
            raise HistoryStoreError(str(e))

    def delete(self, member_id: str) -> None:
        key = history_key(member_id, self.key_prefix)
        try:
            self.client.delete(key)
            logger.debug(f"Vote history cleared for {member_id}")
        except redis.RedisError as e:
            logger.error(f"Redis error clearing vote history for {member_id}: {e}")
            raise HistoryStoreError(str(e))

    def close(self):
        """Close Redis connection pool."""
        if self.pool is None:
            return
        try:
            self.pool.disconnect()
            logger.info("Redis connection pool closed")
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")


class MemoryHistoryStore:
    """In-process store holding the same JSON documents as RedisHistoryStore."""

    def __init__(self, key_prefix: Optional[str] = None):
        self.key_prefix = key_prefix or settings.VOTE_HISTORY_KEY_PREFIX
        self.documents: Dict[str, str] = {}

    def load(self, member_id: str) -> Optional[Dict[str, Any]]:
        raw = self.documents.get(history_key(member_id, self.key_prefix))
        if raw is None:
            return None
        return decode_history(raw)

    def save(self, member_id: str, voted_positions: Dict[str, bool]) -> None:
        self.documents[history_key(member_id, self.key_prefix)] = encode_history(voted_positions)

    def delete(self, member_id: str) -> None:
        self.documents.pop(history_key(member_id, self.key_prefix), None)
