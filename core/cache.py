"""
Кэш успешных регистраций типа поля.

Живёт только в памяти процесса. Ограничен по размеру и по времени жизни
записи, поэтому повторный вход с тем же токеном через сутки снова уйдёт в Bitrix24.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional, Tuple

from core.config import settings

CacheKey = Tuple[str, str]


class RegistrationCache:
    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        max_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = settings.REGISTRATION_CACHE_TTL if ttl_seconds is None else ttl_seconds
        self.max_size = settings.REGISTRATION_CACHE_MAX_SIZE if max_size is None else max_size
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, float]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(domain: str, auth_token: str) -> CacheKey:
        return (domain.strip().lower(), auth_token)

    def contains(self, domain: str, auth_token: str) -> bool:
        key = self.make_key(domain, auth_token)
        now = self._clock()
        with self._lock:
            stored_at = self._entries.get(key)
            if stored_at is None:
                return False
            if self.ttl_seconds > 0 and now - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return False
            return True

    def add(self, domain: str, auth_token: str) -> None:
        if self.max_size <= 0:
            return
        key = self.make_key(domain, auth_token)
        with self._lock:
            self._entries[key] = self._clock()
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                # вытесняем самую старую запись
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
