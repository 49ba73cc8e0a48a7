# 同一个商品的 sync / 改价 串行执行（先删后插不能并发）；不同商品互不影响

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

import redis
from redis.exceptions import LockError, RedisError

from app.core.config import settings
from app.services.variants.errors import TransientIOError


logger = logging.getLogger(__name__)


def lock_key(shop: str, product_id: int) -> str:
    return f"{settings.VARIANT_LOCK_KEY_PREFIX}:{shop}:{int(product_id)}"



class LocalProductLock:
    """单进程（inline 模式 / 测试）：每个 key 一把 threading.Lock"""

    def __init__(self, *, blocking_sec: Optional[float] = None) -> None:
        self.blocking_sec = float(settings.VARIANT_LOCK_BLOCKING_SEC if blocking_sec is None else blocking_sec)
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._lock_for(key)
        if self.blocking_sec > 0:
            acquired = lock.acquire(timeout=self.blocking_sec)
        else:
            acquired = lock.acquire(blocking=False)
        if not acquired:
            raise TransientIOError(f"could not acquire lock {key} within {self.blocking_sec}s")
        try:
            yield
        finally:
            lock.release()



class RedisProductLock:
    """
    多 worker：redis-py 自带的 Lock（SET NX PX + token 校验释放）
      - timeout_sec: 租期，worker 崩了锁也会自动过期
      - blocking_sec: 抢锁最长等待，超时算 TransientIOError
    """

    def __init__(self, client: "redis.Redis", *, timeout_sec: Optional[int] = None,
                 blocking_sec: Optional[float] = None) -> None:
        self._r = client
        self.timeout_sec = int(timeout_sec or settings.VARIANT_LOCK_TIMEOUT_SEC)
        self.blocking_sec = float(settings.VARIANT_LOCK_BLOCKING_SEC if blocking_sec is None else blocking_sec)

    @classmethod
    def from_settings(cls) -> "RedisProductLock":
        url = settings.REDIS_URL or settings.CELERY_BROKER_URL
        if not url:
            raise RuntimeError("VARIANT_LOCK_BACKEND=redis but REDIS_URL is not configured")
        return cls(redis.from_url(url, decode_responses=True))

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        lock = self._r.lock(key, timeout=self.timeout_sec, blocking_timeout=self.blocking_sec)
        try:
            acquired = lock.acquire(blocking=True)
        except RedisError as e:
            raise TransientIOError(f"redis lock {key} unavailable: {e}") from e
        if not acquired:
            raise TransientIOError(f"could not acquire lock {key} within {self.blocking_sec}s")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError:
                # 租期已过，锁可能已被别人拿走；只记录
                logger.warning("variant_sync.lock_expired key=%s timeout_sec=%s", key, self.timeout_sec)



_lock_singleton = None
_lock_guard = threading.Lock()


def get_product_lock():
    """按 VARIANT_LOCK_BACKEND 选后端，进程内单例"""
    global _lock_singleton
    with _lock_guard:
        if _lock_singleton is None:
            backend = (settings.VARIANT_LOCK_BACKEND or "local").strip().lower()
            if backend == "redis":
                _lock_singleton = RedisProductLock.from_settings()
            elif backend == "local":
                _lock_singleton = LocalProductLock()
            else:
                raise RuntimeError(f"Unknown VARIANT_LOCK_BACKEND: {backend!r}")
        return _lock_singleton


def reset_product_lock() -> None:
    global _lock_singleton
    with _lock_guard:
        _lock_singleton = None


@contextmanager
def product_lock(shop: str, product_id: int, lock=None) -> Iterator[None]:
    with (lock or get_product_lock()).hold(lock_key(shop, product_id)):
        yield
