"""
Per-resource write serialization for the booking ledger.

Every booking write for a resource (create, reschedule) runs its
conflict check and insert inside ``resource_lock(resource_id)``. The lock
is layered:

- a process-local ``threading.Lock`` per resource id, always taken;
- a Redis ``SET NX EX`` mutex when ``settings.redis_url`` is configured, so
  several API workers serialize on the same resource.

Bookings on different resources never contend.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional
import uuid

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import ResourceBusyException

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

_LOCAL_LOCKS: Dict[str, threading.Lock] = {}
_LOCAL_LOCKS_GUARD = threading.Lock()

_POLL_INTERVAL_S = 0.05

# Delete the key only if we still own it.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _lock_key(resource_id: str) -> str:
    return f"resource:{resource_id}:booking-mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _local_lock(resource_id: str) -> threading.Lock:
    with _LOCAL_LOCKS_GUARD:
        lock = _LOCAL_LOCKS.get(resource_id)
        if lock is None:
            lock = threading.Lock()
            _LOCAL_LOCKS[resource_id] = lock
        return lock


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if not settings.redis_url:
        return None
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("booking_lock_sync_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def _acquire_redis_lock(
    client: Redis, resource_id: str, token: str, ttl_s: int, wait_s: float
) -> bool:
    key = _namespaced_key(_lock_key(resource_id))
    deadline = time.monotonic() + wait_s
    while True:
        if client.set(key, token, nx=True, ex=ttl_s):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(_POLL_INTERVAL_S)


def _release_redis_lock(client: Redis, resource_id: str, token: str) -> None:
    try:
        released = client.eval(_RELEASE_SCRIPT, 1, _namespaced_key(_lock_key(resource_id)), token)
        prometheus_metrics.record_booking_lock("release", "success" if released else "not_found")
    except Exception as exc:
        prometheus_metrics.record_booking_lock("release", "error")
        logger.warning(
            "booking_lock_redis_release_failed",
            extra={
                "resource_id": resource_id,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def resource_lock(
    resource_id: str,
    ttl_s: Optional[int] = None,
    wait_s: Optional[float] = None,
) -> Iterator[None]:
    """
    Hold the booking mutex for ``resource_id`` for the duration of the block.

    Raises:
        ResourceBusyException: If the lock could not be taken within ``wait_s``
    """
    ttl = ttl_s if ttl_s is not None else settings.booking_lock_ttl_seconds
    wait = wait_s if wait_s is not None else settings.booking_lock_wait_seconds

    local = _local_lock(resource_id)
    if not local.acquire(timeout=wait):
        prometheus_metrics.record_booking_lock("acquire", "blocked")
        raise ResourceBusyException(resource_id)

    token: Optional[str] = None
    client: Optional[Redis] = None
    try:
        client = _get_sync_redis()
        if client is None:
            if settings.redis_url:
                prometheus_metrics.record_booking_lock("acquire", "redis_unavailable")
        else:
            token = uuid.uuid4().hex
            try:
                acquired = _acquire_redis_lock(client, resource_id, token, ttl, wait)
            except Exception as exc:
                # Redis outage: fall back to the local lock and the row lock in the transaction.
                prometheus_metrics.record_booking_lock("acquire", "error")
                logger.warning(
                    "booking_lock_redis_acquire_failed",
                    extra={
                        "resource_id": resource_id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                token = None
            else:
                if not acquired:
                    prometheus_metrics.record_booking_lock("acquire", "blocked")
                    raise ResourceBusyException(resource_id)

        prometheus_metrics.record_booking_lock("acquire", "success")
        try:
            yield
        finally:
            if client is not None and token is not None:
                _release_redis_lock(client, resource_id, token)
    finally:
        local.release()
