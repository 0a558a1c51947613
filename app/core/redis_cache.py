import logging
import time
import uuid
from typing import Optional, Dict
import redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from app.core.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis-backed lock store guarding check-then-insert sequences"""

    def __init__(self, redis_url: Optional[str] = None, redis_password: Optional[str] = None):
        """Initialize Redis client (lazy connection)"""
        self._redis_url = redis_url or settings.redis_url
        self._redis_password = redis_password if redis_password is not None else settings.redis_password
        self._client: Optional[redis.Redis] = None
        self._connected = False
        # lock_key -> token we set, so we never delete someone else's lock
        self._held_locks: Dict[str, str] = {}

    def _connect(self):
        """Connect to Redis server"""
        if self._connected and self._client is not None:
            return

        try:
            client_kwargs = {
                'decode_responses': True,
                'socket_connect_timeout': 2,
                'socket_timeout': 2,
                'retry_on_timeout': False,
                'db': settings.redis_db,
            }
            # Settings password takes precedence over the URL password
            if self._redis_password:
                client_kwargs['password'] = self._redis_password

            self._client = redis.from_url(self._redis_url, **client_kwargs)
            self._client.ping()
            self._connected = True
            logger.info("RedisCache: Connected to Redis")
        except RedisConnectionError as e:
            logger.error(f"RedisCache: Failed to connect to Redis - {e}")
            self._connected = False
            self._client = None
        except RedisError as e:
            logger.error(f"RedisCache: Redis error during connection - {e}")
            self._connected = False
            self._client = None

    def ping(self) -> bool:
        """Check if Redis connection is alive"""
        self._connect()
        if self._client is None:
            return False
        try:
            self._client.ping()
            return True
        except RedisError:
            self._connected = False
            return False

    def acquire_lock(self, lock_key: str, timeout_seconds: int = 10, block_seconds: int = 5) -> bool:
        """
        Acquire a distributed lock using Redis.

        Args:
            lock_key: Unique key for the lock
            timeout_seconds: How long the lock will be held (auto-release)
            block_seconds: How long to wait trying to acquire the lock

        Returns:
            True if lock acquired, False otherwise
        """
        self._connect()
        if self._client is None:
            logger.warning(f"RedisCache: Cannot acquire lock {lock_key} - Redis not available")
            return False

        lock_value = str(uuid.uuid4())
        end_time = time.monotonic() + block_seconds

        try:
            while time.monotonic() < end_time:
                # SET NX EX is atomic
                if self._client.set(lock_key, lock_value, nx=True, ex=timeout_seconds):
                    self._held_locks[lock_key] = lock_value
                    logger.debug(f"RedisCache: Lock acquired - {lock_key}")
                    return True
                time.sleep(0.05)

            logger.debug(f"RedisCache: Failed to acquire lock - {lock_key}")
            return False
        except RedisError as e:
            logger.error(f"RedisCache: Error acquiring lock {lock_key}: {e}")
            self._connected = False
            return False

    def release_lock(self, lock_key: str):
        """Release a lock previously acquired by this instance"""
        lock_value = self._held_locks.pop(lock_key, None)
        if lock_value is None or self._client is None:
            return

        try:
            if self._client.get(lock_key) == lock_value:
                self._client.delete(lock_key)
                logger.debug(f"RedisCache: Lock released - {lock_key}")
        except RedisError as e:
            logger.error(f"RedisCache: Error releasing lock {lock_key}: {e}")
            self._connected = False
