"""Blocking counterparts of the cached readers, for code without an event loop.

The freshness and reload rules are the ones of :mod:`user_lookup.reader`;
the critical section is guarded by a ``threading.Lock`` instead.

Example::

    from user_lookup.sync_reader import PasswdReader

    reader = PasswdReader(cache_time=0)
    print(reader.get_username_by_uid(1000))
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from datetime import timedelta
from pathlib import Path
from typing import Any, TypeVar

from .exceptions import IoFailure, MalformedRecord
from .models import GroupEntry, PasswdEntry
from .parsers import GROUP_KIND, PASSWD_KIND, RecordKind
from .reader import BaseCachedReader
from .snapshot import Snapshot

E = TypeVar("E")


class SyncCachedReader(BaseCachedReader[E]):
    """Thread-safe blocking reader."""

    def __init__(self, kind: RecordKind[E], cache_time: float | int | timedelta = 0.0, **kwargs: Any) -> None:
        super().__init__(kind, cache_time, **kwargs)
        self._lock = threading.Lock()

    def snapshot(self) -> Snapshot[E]:
        arrival = self._generation
        with self._lock:
            current = self._reusable(arrival)
            if current is not None:
                return current
            return self._reload()

    def force_refresh(self) -> Snapshot[E]:
        with self._lock:
            return self._reload()

    def _reload(self) -> Snapshot[E]:
        generation, started = self._begin_reload()
        try:
            loaded = self._load()
        except (IoFailure, MalformedRecord) as exc:
            self._reload_failed(exc)
            raise
        return self._install(loaded, generation, started)

    def lookup_by_id(self, entry_id: int) -> E | None:
        return self.snapshot().by_id.get(entry_id)

    def lookup_by_name(self, name: str) -> E | None:
        return self.snapshot().by_name.get(name)

    def all_entries(self) -> list[E]:
        return list(self.snapshot().entries)

    def __iter__(self) -> Iterator[E]:
        return iter(self.snapshot().entries)


class PasswdReader(SyncCachedReader[PasswdEntry]):
    def __init__(self, cache_time: float | int | timedelta = 0.0, path: str | Path | None = None, **kwargs: Any) -> None:
        super().__init__(PASSWD_KIND, cache_time, path=path, **kwargs)

    def get_username_by_uid(self, uid: int) -> str | None:
        entry = self.lookup_by_id(uid)
        return entry.username if entry is not None else None

    def get_uid_by_username(self, username: str) -> int | None:
        entry = self.lookup_by_name(username)
        return entry.uid if entry is not None else None


class GroupReader(SyncCachedReader[GroupEntry]):
    def __init__(self, cache_time: float | int | timedelta = 0.0, path: str | Path | None = None, **kwargs: Any) -> None:
        super().__init__(GROUP_KIND, cache_time, path=path, **kwargs)

    def get_name_by_gid(self, gid: int) -> str | None:
        entry = self.lookup_by_id(gid)
        return entry.name if entry is not None else None

    def get_gid_by_name(self, name: str) -> int | None:
        entry = self.lookup_by_name(name)
        return entry.gid if entry is not None else None


__all__ = ["SyncCachedReader", "PasswdReader", "GroupReader"]
