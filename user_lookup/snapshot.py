"""Immutable, indexed snapshots of a parsed account database."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Generic, TypeVar

from .exceptions import MalformedRecord
from .parsers import RecordKind, decode_line, is_record_line

E = TypeVar("E")


class MalformedPolicy(str, Enum):
    """What a refresh does with a line that fails to parse."""

    SKIP = "skip"
    ABORT = "abort"


@dataclass(frozen=True)
class Snapshot(Generic[E]):
    """All entries parsed from a single read of one database file.

    ``by_id`` and ``by_name`` are built over ``entries``; when a key repeats,
    the first entry in file order is indexed.
    """

    entries: tuple[E, ...]
    by_id: Mapping[int, E]
    by_name: Mapping[str, E]
    loaded_at: float
    captured_at: datetime
    generation: int
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.entries)


def parse_lines(
    kind: RecordKind[E], lines: Iterable[str | bytes], policy: MalformedPolicy
) -> tuple[list[E], list[MalformedRecord]]:
    """Parse every record line, applying ``policy`` to failures.

    Raw ``bytes`` lines are decoded one at a time, so an undecodable line is
    handled like any other malformed line.
    """
    entries: list[E] = []
    errors: list[MalformedRecord] = []
    for number, line in enumerate(lines, start=1):
        try:
            text = decode_line(line) if isinstance(line, bytes) else line
            if not is_record_line(text):
                continue
            entries.append(kind.parse(text))
        except MalformedRecord as exc:
            tagged = exc.at_line(number)
            if policy is MalformedPolicy.ABORT:
                raise tagged from exc
            errors.append(tagged)
    return entries, errors


def build_snapshot(
    kind: RecordKind[E],
    entries: Iterable[E],
    *,
    loaded_at: float,
    generation: int,
    skipped: int = 0,
) -> Snapshot[E]:
    items = tuple(entries)
    by_id: dict[int, E] = {}
    by_name: dict[str, E] = {}
    for entry in items:
        by_id.setdefault(kind.id_of(entry), entry)
        by_name.setdefault(kind.name_of(entry), entry)
    return Snapshot(
        entries=items,
        by_id=MappingProxyType(by_id),
        by_name=MappingProxyType(by_name),
        loaded_at=loaded_at,
        captured_at=datetime.now(UTC),
        generation=generation,
        skipped=skipped,
    )


__all__ = ["MalformedPolicy", "Snapshot", "parse_lines", "build_snapshot"]
