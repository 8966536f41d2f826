from __future__ import annotations

import time
from typing import Any, Callable, MutableMapping, Optional, Protocol, Tuple

DEFAULT_TTL = 120.0  # seconds


class ResponseCache(Protocol):
    def get(self, key: str) -> Optional[Tuple[Any, float]]: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class TTLCache:
    """
    Timestamped key/value cache with expiry.

    Entries live in `store`, which defaults to a private dict. Pass
    `st.session_state` to get a per-browser-session cache (the equivalent of
    sessionStorage); keys are prefixed so clear() only touches ours.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        store: Optional[MutableMapping[str, Any]] = None,
        prefix: str = "dc-cache:",
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self._store: MutableMapping[str, Any] = {} if store is None else store
        self._prefix = prefix
        self._clock = clock

    def _k(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Optional[Tuple[Any, float]]:
        entry = self._store.get(self._k(key))
        if not entry:
            return None
        value, ts = entry
        if self.ttl is not None and self._clock() - ts > self.ttl:
            self.delete(key)
            return None
        return value, ts

    def set(self, key: str, value: Any) -> None:
        self._store[self._k(key)] = (value, self._clock())

    def delete(self, key: str) -> None:
        self._store.pop(self._k(key), None)

    def clear(self) -> None:
        for k in [k for k in list(self._store.keys()) if str(k).startswith(self._prefix)]:
            self._store.pop(k, None)

    def __len__(self) -> int:
        return sum(1 for k in list(self._store.keys()) if str(k).startswith(self._prefix))
