"""
Short-lived acknowledgement cache

Read-your-own-write cache for the acknowledgement status endpoint. It is
owned by the application (created in main.py, stored on app.state) and is
not a source of truth: losing it on restart only means the next status
check falls through to Supabase.
"""
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Key -> value map whose entries expire after `ttl_seconds`"""

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 1000
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_threshold = sweep_threshold
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    @staticmethod
    def _normalize(key: str) -> str:
        return key.strip().lower()

    def set(self, key: str, value: Any) -> None:
        if len(self._entries) >= self.sweep_threshold:
            self.purge_expired()
        self._entries[self._normalize(key)] = (self._clock() + self.ttl_seconds, value)

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(self._normalize(key))
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(self._normalize(key), None)
            return None
        return value

    def purge_expired(self) -> int:
        """Drop every expired entry, returning how many were removed"""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def delete(self, key: str) -> bool:
        return self._entries.pop(self._normalize(key), None) is not None

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
