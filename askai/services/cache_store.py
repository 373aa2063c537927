from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from pathlib import Path
from typing import Any, Protocol

from askai.config import Settings
from askai.services import logger as log_service

CACHE_VERSION = 1


class CacheStore(Protocol):
    def set(self, namespace: str, key: str, value: Any, ttl: float | None = None) -> None: ...
    def get(self, namespace: str, key: str) -> Any | None: ...


class MemoryCacheStore:
    """Process-local store with an optional entry cap.

    Expired entries are dropped on read and swept on every write. Past
    ``max_entries`` the least recently written entries are evicted first.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        self.max_entries = max_entries if max_entries and max_entries > 0 else None
        self._entries: OrderedDict[tuple[str, str], tuple[Any, float | None]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at is not None and now >= expires_at]
        for k in expired:
            del self._entries[k]

    def set(self, namespace: str, key: str, value: Any, ttl: float | None = None) -> None:
        now = time.monotonic()
        expires_at = now + ttl if ttl is not None else None
        with self._lock:
            self._sweep(now)
            self._entries[(namespace, key)] = (value, expires_at)
            self._entries.move_to_end((namespace, key))
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    self._entries.popitem(last=False)

    def get(self, namespace: str, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get((namespace, key))
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._entries[(namespace, key)]
                return None
            return value


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileCacheStore:
    """One JSON file per entry under ``cache_dir/<namespace>/``."""

    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir)

    def path_for(self, namespace: str, key: str) -> Path:
        digest = sha256(f"v{CACHE_VERSION}|{namespace}|{key}".encode("utf-8")).hexdigest()
        return self.cache_dir / namespace / f"{digest}.json"

    def set(self, namespace: str, key: str, value: Any, ttl: float | None = None) -> None:
        path = self.path_for(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)

        stored_at = _utc_now()
        payload = {
            "version": CACHE_VERSION,
            "key": key,
            "stored_at": stored_at.isoformat(),
            "expires_at": (stored_at + timedelta(seconds=ttl)).isoformat() if ttl is not None else None,
            "value": value,
        }
        # Write-then-rename so concurrent readers never see a partial file.
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=True), encoding="utf-8")
        tmp_path.replace(path)

    def get(self, namespace: str, key: str) -> Any | None:
        path = self.path_for(namespace, key)
        if not path.exists():
            return None

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            log_service.log_cache_operation("get", key, "failed", error=str(e))
            return None

        if not isinstance(payload, dict) or payload.get("key") != key:
            return None

        expires_at_raw = payload.get("expires_at")
        if isinstance(expires_at_raw, str):
            try:
                expires_at = datetime.fromisoformat(expires_at_raw)
            except ValueError:
                return None
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if _utc_now() >= expires_at:
                return None

        return payload.get("value")


def get_cache_store(settings: Settings) -> CacheStore | None:
    """Build the configured store; ``None`` means caching has no backing store."""
    backend = settings.cache_backend.lower().strip()
    if backend == "none":
        return None
    if backend == "memory":
        return MemoryCacheStore(settings.cache_max_entries)
    if backend == "file":
        return FileCacheStore(settings.cache_dir)
    raise ValueError(f"Unsupported CACHE_BACKEND: {settings.cache_backend}")
