"""File-backed cache for fetched OpenAPI documents."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class CacheEntry:
    content: Dict[str, Any]
    fetched_at: float
    etag: Optional[str] = None


class SpecCache:
    """Stores one JSON file per source URL under ``cache_dir``.

    Each file holds ``{"content", "timestamp", "etag"}``; entries older than
    ``ttl_seconds`` are reported as missing even if the file is still present.
    """

    def __init__(
        self,
        cache_dir: str | Path = ".cache",
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def get(self, source_key: str) -> Optional[CacheEntry]:
        path = self._path_for(source_key)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            entry = CacheEntry(
                content=raw["content"],
                fetched_at=float(raw["timestamp"]),
                etag=raw.get("etag"),
            )
        except FileNotFoundError:
            return None
        except Exception as exc:
            logger.debug("Ignoring unreadable cache entry %s: %s", path, exc)
            return None

        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            logger.debug("Cache entry expired for %s", source_key)
            return None
        return entry

    def put(self, source_key: str, content: Dict[str, Any], etag: Optional[str] = None) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        payload = {"content": content, "timestamp": self._clock(), "etag": etag}
        self._path_for(source_key).write_text(json.dumps(payload), encoding="utf-8")

    def _path_for(self, source_key: str) -> Path:
        digest = hashlib.sha256(source_key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}.json"
