"""Day-scoped caching for USD rate lookups.

Cache layout:
    ~/.compounder/cache/
        rates_cache.json   {"usd_try:2025-01-31": {...RateResult...}, ...}

Entries never expire on their own; each calendar day uses a new key.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from compounder.models import RateResult, rate_result_from_dict, rate_result_to_dict

logger = logging.getLogger(__name__)

CACHE_DIR = Path.home() / ".compounder" / "cache"
RATES_FILE = "rates_cache.json"


class RateCache(Protocol):
    def get(self, key: str) -> RateResult | None: ...

    def set(self, key: str, value: RateResult) -> None: ...


class MemoryRateCache:
    """Process-scoped cache; lives as long as the object."""

    def __init__(self) -> None:
        self._store: dict[str, RateResult] = {}

    def get(self, key: str) -> RateResult | None:
        return self._store.get(key)

    def set(self, key: str, value: RateResult) -> None:
        self._store[key] = value


class FileRateCache:
    """JSON-file cache shared between CLI runs.

    A missing, corrupt or malformed entry reads as a miss.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path if self._path is not None else CACHE_DIR / RATES_FILE

    def _load_store(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable rate cache at %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> RateResult | None:
        raw = self._load_store().get(key)
        if raw is None:
            return None
        try:
            return rate_result_from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed rate cache entry %s", key)
            return None

    def set(self, key: str, value: RateResult) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        store = self._load_store()
        store[key] = rate_result_to_dict(value)
        self.path.write_text(json.dumps(store, indent=2), encoding="utf-8")


# --- Cache management ---

def cache_status() -> list[dict]:
    """Describe the files holding cached rate lookups, sorted by file name.

    Each entry has the file name, full path, size and UTC modification time.
    A cache directory that was never created reports no files.
    """
    if not CACHE_DIR.exists():
        return []
    entries = []
    for path in sorted(p for p in CACHE_DIR.iterdir() if p.is_file()):
        stat = path.stat()
        modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        entries.append({
            "file": path.name,
            "path": str(path),
            "size_bytes": stat.st_size,
            "modified": modified.isoformat(),
        })
    return entries


def clear_cache() -> int:
    """Drop every cached rate lookup; the next request refetches from the provider.

    Returns the number of cache files removed.
    """
    if not CACHE_DIR.exists():
        return 0
    files = [p for p in CACHE_DIR.iterdir() if p.is_file()]
    for path in files:
        path.unlink()
    return len(files)
