"""Memoization store for resolved campaign identities."""

import threading
from dataclasses import dataclass, fields, replace


@dataclass(frozen=True)
class CacheEntry:
    """Cached resolution for one raw campaign name.

    ``None`` means "not computed yet" for that field; an empty string or
    ``False`` is a computed (unresolved) answer.
    """

    advertiser: str | None = None
    agency: str | None = None
    agency_abbreviation: str | None = None
    is_test: bool | None = None


_ENTRY_FIELDS = frozenset(f.name for f in fields(CacheEntry))


class ClassificationCache:
    """Key -> CacheEntry store keyed by the exact raw campaign name.

    Entries merge: the agency and advertiser cascades populate their own
    fields for the same name without touching each other's. Pure
    memoization; clearing it only costs recomputation.

    Usage:
        cache = ClassificationCache()
        cache.put("2001567: MJ: Acme-Fall", agency="MediaJel Direct")
        cache.get("2001567: MJ: Acme-Fall").agency
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(name)

    def put(self, name: str, **values: str | bool) -> CacheEntry:
        """Merge the given fields into the entry for ``name``."""
        unknown = set(values) - _ENTRY_FIELDS
        if unknown:
            raise TypeError(f"Unknown cache fields: {sorted(unknown)}")

        with self._lock:
            entry = replace(self._entries.get(name, CacheEntry()), **values)
            self._entries[name] = entry
            return entry

    def clear(self) -> None:
        """Drop every entry (e.g. after swapping rule tables)."""
        with self._lock:
            self._entries = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries
