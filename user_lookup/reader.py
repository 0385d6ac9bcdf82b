"""Cached, asyncio friendly readers for the passwd and group databases.

A reader owns one :class:`~user_lookup.snapshot.Snapshot` and the time it was
loaded. Every query first makes sure the snapshot is younger than the
configured cache time, reloading the whole file when it is not, and then
answers from the snapshot.

Example::

    reader = PasswdReader(cache_time=30)
    entry = await reader.lookup_by_id(1000)
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from pathlib import Path
from typing import Any, Generic, TypeVar

from .exceptions import ConfigurationError, IoFailure, MalformedRecord
from .models import GroupEntry, PasswdEntry
from .parsers import GROUP_KIND, PASSWD_KIND, RecordKind
from .snapshot import MalformedPolicy, Snapshot, build_snapshot, parse_lines
from .utils.logger import get_logger

E = TypeVar("E")

logger = get_logger(__name__)

Clock = Callable[[], float]


def read_lines(path: str) -> list[bytes]:
    """Read a database file as raw lines split on ``\\n`` only.

    Decoding happens per line in :func:`~user_lookup.snapshot.parse_lines`; a
    trailing ``\\r`` is left for the parsers to strip.
    """
    try:
        with open(path, "rb") as handle:
            return handle.read().split(b"\n")
    except OSError as exc:
        raise IoFailure(path, f"Could not read account database '{path}': {exc}") from exc


def cache_seconds(value: float | int | timedelta) -> float:
    """Normalize a cache time to non-negative seconds."""
    seconds = value.total_seconds() if isinstance(value, timedelta) else float(value)
    if not math.isfinite(seconds):
        raise ConfigurationError(f"cache time must be a finite number, got {seconds}")
    if seconds < 0:
        raise ConfigurationError(f"cache time must not be negative, got {seconds}")
    return seconds


class BaseCachedReader(Generic[E]):
    """State and bookkeeping shared by the async and blocking readers.

    Subclasses provide the lock and decide how the file read is scheduled;
    everything touching ``_snapshot`` or ``_last_loaded`` runs while that lock
    is held.
    """

    def __init__(
        self,
        kind: RecordKind[E],
        cache_time: float | int | timedelta = 0.0,
        *,
        path: str | Path | None = None,
        policy: MalformedPolicy | str = MalformedPolicy.SKIP,
        clock: Clock = time.monotonic,
    ) -> None:
        self.kind = kind
        self.path = str(path) if path is not None else kind.default_path
        self.cache_time = cache_seconds(cache_time)
        try:
            self.policy = MalformedPolicy(policy)
        except ValueError as exc:
            raise ConfigurationError(f"unknown malformed line policy: {policy!r}") from exc
        self._clock = clock
        self._snapshot: Snapshot[E] | None = None
        self._last_loaded: float | None = None
        # number of reloads started, successful or not
        self._generation = 0
        self.reloads = 0
        self.failures = 0

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(path={self.path!r}, "
            f"cache_time={self.cache_time}, policy={self.policy.value!r})"
        )

    @property
    def last_loaded(self) -> float | None:
        """Clock reading taken when the current snapshot started loading."""
        return self._last_loaded

    def is_stale(self, now: float | None = None) -> bool:
        if self._last_loaded is None:
            return True
        if now is None:
            now = self._clock()
        return now - self._last_loaded >= self.cache_time

    def _reusable(self, arrival: int) -> Snapshot[E] | None:
        """Return the current snapshot if it may answer a caller.

        ``arrival`` is the reload count observed when the caller arrived; a
        snapshot from a reload started after that is as fresh as a reload
        of our own would be.
        """
        snapshot = self._snapshot
        if snapshot is None:
            return None
        if snapshot.generation > arrival or not self.is_stale():
            return snapshot
        return None

    def _begin_reload(self) -> tuple[int, float]:
        self._generation += 1
        return self._generation, self._clock()

    def _load(self) -> tuple[list[E], list[MalformedRecord]]:
        return parse_lines(self.kind, read_lines(self.path), self.policy)

    def _install(
        self,
        loaded: tuple[list[E], list[MalformedRecord]],
        generation: int,
        started: float,
    ) -> Snapshot[E]:
        entries, errors = loaded
        snapshot = build_snapshot(
            self.kind,
            entries,
            loaded_at=started,
            generation=generation,
            skipped=len(errors),
        )
        self._snapshot = snapshot
        self._last_loaded = started
        self.reloads += 1
        if errors:
            logger.warning(
                "Skipped malformed lines in account database",
                event="user_lookup.reader.malformed_skipped",
                database=self.kind.label,
                path=self.path,
                skipped=len(errors),
                first_error=str(errors[0]),
            )
        logger.debug(
            "Reloaded account database",
            event="user_lookup.reader.reloaded",
            database=self.kind.label,
            path=self.path,
            entries=len(snapshot),
            generation=generation,
        )
        return snapshot

    def _reload_failed(self, exc: Exception) -> None:
        self.failures += 1
        logger.warning(
            "Account database reload failed; keeping previous snapshot",
            event="user_lookup.reader.reload_failed",
            database=self.kind.label,
            path=self.path,
            error=str(exc),
            has_previous=self._snapshot is not None,
        )

    def stats(self) -> dict[str, Any]:
        snapshot = self._snapshot
        return {
            "database": self.kind.label,
            "path": self.path,
            "cache_seconds": self.cache_time,
            "reloads": self.reloads,
            "failures": self.failures,
            "entries": len(snapshot) if snapshot is not None else 0,
            "skipped": snapshot.skipped if snapshot is not None else 0,
            "last_loaded": self._last_loaded,
        }


class CachedReader(BaseCachedReader[E]):
    """Async reader; the file read runs in the default executor.

    The freshness check and any reload happen under one ``asyncio.Lock``, so
    concurrent callers hitting a stale cache wait for a single reload and
    share its snapshot.
    """

    def __init__(self, kind: RecordKind[E], cache_time: float | int | timedelta = 0.0, **kwargs: Any) -> None:
        super().__init__(kind, cache_time, **kwargs)
        self._lock = asyncio.Lock()

    async def snapshot(self) -> Snapshot[E]:
        """Return a snapshot that is fresh enough, reloading if needed."""
        arrival = self._generation
        async with self._lock:
            current = self._reusable(arrival)
            if current is not None:
                return current
            return await self._reload()

    async def force_refresh(self) -> Snapshot[E]:
        """Reload unconditionally, whatever the snapshot age."""
        async with self._lock:
            return await self._reload()

    async def _reload(self) -> Snapshot[E]:
        generation, started = self._begin_reload()
        loop = asyncio.get_running_loop()
        try:
            loaded = await loop.run_in_executor(None, self._load)
        except (IoFailure, MalformedRecord) as exc:
            self._reload_failed(exc)
            raise
        return self._install(loaded, generation, started)

    async def lookup_by_id(self, entry_id: int) -> E | None:
        snapshot = await self.snapshot()
        return snapshot.by_id.get(entry_id)

    async def lookup_by_name(self, name: str) -> E | None:
        snapshot = await self.snapshot()
        return snapshot.by_name.get(name)

    async def all_entries(self) -> list[E]:
        snapshot = await self.snapshot()
        return list(snapshot.entries)

    async def __aiter__(self) -> AsyncIterator[E]:
        snapshot = await self.snapshot()
        for entry in snapshot.entries:
            yield entry


class PasswdReader(CachedReader[PasswdEntry]):
    """Cached reader for ``/etc/passwd`` or a passwd file at ``path``.

    Use ``cache_time=0`` to reload on every query.
    """

    def __init__(self, cache_time: float | int | timedelta = 0.0, path: str | Path | None = None, **kwargs: Any) -> None:
        super().__init__(PASSWD_KIND, cache_time, path=path, **kwargs)

    async def get_username_by_uid(self, uid: int) -> str | None:
        entry = await self.lookup_by_id(uid)
        return entry.username if entry is not None else None

    async def get_uid_by_username(self, username: str) -> int | None:
        entry = await self.lookup_by_name(username)
        return entry.uid if entry is not None else None


class GroupReader(CachedReader[GroupEntry]):
    """Cached reader for ``/etc/group`` or a group file at ``path``."""

    def __init__(self, cache_time: float | int | timedelta = 0.0, path: str | Path | None = None, **kwargs: Any) -> None:
        super().__init__(GROUP_KIND, cache_time, path=path, **kwargs)

    async def get_name_by_gid(self, gid: int) -> str | None:
        entry = await self.lookup_by_id(gid)
        return entry.name if entry is not None else None

    async def get_gid_by_name(self, name: str) -> int | None:
        entry = await self.lookup_by_name(name)
        return entry.gid if entry is not None else None


__all__ = [
    "BaseCachedReader",
    "CachedReader",
    "PasswdReader",
    "GroupReader",
    "read_lines",
    "cache_seconds",
]
