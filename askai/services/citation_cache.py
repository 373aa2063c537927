from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ValidationError

from askai.services import logger as log_service
from askai.services.cache_store import CacheStore

NAMESPACE = "citations"
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


class CitationRecord(BaseModel):
    links: list[str]


class CitationLookupError(Exception):
    """Base class for citation lookups that cannot produce a link."""


class InvalidIndexError(CitationLookupError):
    def __init__(self, raw: Any):
        super().__init__(f"Citation index must be a whole number, got {raw!r}")
        self.raw = raw


class CitationNotFoundError(CitationLookupError):
    def __init__(self, message_id: str):
        super().__init__(f"No citations stored for message {message_id}")
        self.message_id = message_id


class IndexOutOfRangeError(CitationLookupError):
    def __init__(self, index: int, count: int):
        super().__init__(f"Citation index {index} outside [1, {count}]")
        self.index = index
        self.count = count


def parse_index(raw: Any) -> int:
    """Coerce user input to a whole-number index or raise InvalidIndexError."""
    if isinstance(raw, bool):
        raise InvalidIndexError(raw)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if raw.is_integer():
            return int(raw)
        raise InvalidIndexError(raw)
    if isinstance(raw, str) and _INTEGER_RE.match(raw.strip()):
        return int(raw.strip())
    raise InvalidIndexError(raw)


class CitationCache:
    """Maps a sent message id to the ordered links cited in it.

    With caching disabled or no backing store every operation is a no-op, so
    callers behave the same whether or not a cache is configured.
    """

    def __init__(
        self,
        store: CacheStore | None,
        *,
        enabled: bool = True,
        max_age: float | None = None,
    ):
        self.store = store
        self._enabled = enabled
        self.max_age = max_age

    @property
    def enabled(self) -> bool:
        return self._enabled and self.store is not None

    def put(self, message_id: str, links: list[str], ttl: float | None = None) -> None:
        if not self.enabled:
            return
        record = CitationRecord(links=list(links))
        try:
            self.store.set(NAMESPACE, message_id, record.model_dump(), ttl if ttl is not None else self.max_age)
        except Exception as e:
            # Store failures end here; the answer was already sent.
            log_service.log_cache_operation("put", message_id, "failed", error=str(e))
            return
        log_service.log_cache_operation("put", message_id, "success", details=f"{len(links)} links")

    def get(self, message_id: str) -> CitationRecord | None:
        if not self.enabled:
            return None
        try:
            raw = self.store.get(NAMESPACE, message_id)
        except Exception as e:
            log_service.log_cache_operation("get", message_id, "failed", error=str(e))
            return None
        if raw is None:
            return None
        try:
            return CitationRecord.model_validate(raw)
        except ValidationError as e:
            log_service.log_cache_operation("get", message_id, "failed", error=str(e))
            return None

    def resolve(self, message_id: str, index: Any) -> str:
        """Return the 1-based ``index``-th link cited in ``message_id``."""
        position = parse_index(index)
        record = self.get(message_id)
        if record is None or not record.links:
            raise CitationNotFoundError(message_id)
        if not 1 <= position <= len(record.links):
            raise IndexOutOfRangeError(position, len(record.links))
        return record.links[position - 1]
