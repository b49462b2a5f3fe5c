import logging
import threading
import uuid
from contextlib import contextmanager

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

# Deletes the key only while it still holds this run's token.
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

_redis_client = None


def get_redis_client():
    global _redis_client
    if _redis_client is None:
        url = getattr(settings, "SYNC_REDIS_URL", None) or getattr(
            settings, "CELERY_BROKER_URL", "redis://localhost:6379/0"
        )
        _redis_client = redis.Redis.from_url(url, socket_connect_timeout=2, socket_timeout=2)
    return _redis_client


def _redis_enabled() -> bool:
    return bool(getattr(settings, "SYNC_USE_REDIS", True))


class RunGuard:
    """
    Keeps one sync job from overlapping with itself.

    A process-local lock covers threads of this process; a Redis key covers
    other worker processes. If Redis is unreachable the local lock still holds.
    """

    def __init__(self, name: str):
        self.name = name
        self.lock_key = f"sync_guard:{name}"
        self._local = threading.Lock()
        self._holds_redis = False
        self._token = None

    def try_acquire(self) -> bool:
        if not self._local.acquire(blocking=False):
            return False

        self._holds_redis = False
        if not _redis_enabled():
            return True

        ttl = int(getattr(settings, "SYNC_GUARD_TTL_SECONDS", 3 * 60 * 60))
        token = uuid.uuid4().hex
        try:
            acquired = bool(get_redis_client().set(self.lock_key, token, nx=True, ex=ttl))
        except Exception:
            logger.exception("Lock failure for %s; continuing with local lock only.", self.lock_key)
            return True

        if not acquired:
            self._local.release()
            return False
        self._holds_redis = True
        self._token = token
        return True

    def release(self) -> None:
        if self._holds_redis:
            try:
                released = get_redis_client().eval(RELEASE_SCRIPT, 1, self.lock_key, self._token)
                if not released:
                    logger.warning("%s expired before release; left to its current owner.", self.lock_key)
            except Exception:
                logger.exception("Failed to release %s", self.lock_key)
            self._holds_redis = False
            self._token = None
        if self._local.locked():
            self._local.release()

    @property
    def is_running(self) -> bool:
        return self._local.locked()

    @contextmanager
    def hold(self):
        acquired = self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()
