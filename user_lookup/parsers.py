"""Parsers for colon-delimited account database lines.

Fields are split positionally with a maximum split count, so the last field
keeps any colons it contains. Each parser either returns an entry or raises
:class:`MalformedRecord` naming the field that could not be parsed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import MalformedRecord
from .models import GroupEntry, PasswdEntry

E = TypeVar("E")

MAX_ID = 2**32 - 1

PASSWD_FIELDS = ("username", "passwd", "uid", "gid", "gecos", "home_dir", "shell")
GROUP_FIELDS = ("name", "passwd", "gid", "members")


def _split(line: str, names: tuple[str, ...]) -> list[str]:
    parts = line.rstrip().split(":", len(names) - 1)
    if len(parts) < len(names):
        missing = names[len(parts)]
        raise MalformedRecord(
            f"expected {len(names)} fields, got {len(parts)} (missing '{missing}')",
            field=missing,
            line=line,
        )
    return parts


def _required(value: str, field: str, line: str) -> str:
    if not value:
        raise MalformedRecord(f"'{field}' must not be empty", field=field, line=line)
    if value != value.strip():
        raise MalformedRecord(
            f"'{field}' has surrounding whitespace: {value!r}", field=field, line=line
        )
    return value


def _parse_id(value: str, field: str, line: str) -> int:
    # int() alone would accept signs, spaces, underscores and non-ASCII digits
    if not (value.isascii() and value.isdigit()):
        raise MalformedRecord(
            f"'{field}' is not a numeric id: {value!r}", field=field, line=line
        )
    number = int(value)
    if number > MAX_ID:
        raise MalformedRecord(f"'{field}' out of range: {number}", field=field, line=line)
    return number


def parse_passwd_line(line: str) -> PasswdEntry:
    """Parse ``name:passwd:uid:gid:gecos:home:shell``."""
    username, passwd, uid, gid, gecos, home_dir, shell = _split(line, PASSWD_FIELDS)
    return PasswdEntry(
        username=_required(username, "username", line),
        passwd=passwd,
        uid=_parse_id(uid, "uid", line),
        gid=_parse_id(gid, "gid", line),
        gecos=gecos,
        home_dir=home_dir,
        shell=shell,
    )


def parse_group_line(line: str) -> GroupEntry:
    """Parse ``name:passwd:gid:member,member``; an empty member list is valid."""
    name, passwd, gid, members = _split(line, GROUP_FIELDS)
    return GroupEntry(
        name=_required(name, "name", line),
        passwd=passwd,
        gid=_parse_id(gid, "gid", line),
        members=tuple(m for m in members.split(",") if m),
    )


def decode_line(raw: bytes) -> str:
    """Decode one raw database line as UTF-8."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedRecord(
            f"line is not valid UTF-8: {exc.reason} at byte {exc.start}",
            field="line",
            line=raw.decode("utf-8", errors="replace"),
        ) from exc


def is_record_line(line: str) -> bool:
    """Blank lines and ``#`` comments carry no record."""
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


@dataclass(frozen=True)
class RecordKind(Generic[E]):
    """Everything the generic reader needs to know about one database."""

    label: str
    default_path: str
    parse: Callable[[str], E]
    id_of: Callable[[E], int]
    name_of: Callable[[E], str]


PASSWD_KIND: RecordKind[PasswdEntry] = RecordKind(
    label="passwd",
    default_path="/etc/passwd",
    parse=parse_passwd_line,
    id_of=lambda entry: entry.uid,
    name_of=lambda entry: entry.username,
)

GROUP_KIND: RecordKind[GroupEntry] = RecordKind(
    label="group",
    default_path="/etc/group",
    parse=parse_group_line,
    id_of=lambda entry: entry.gid,
    name_of=lambda entry: entry.name,
)


__all__ = [
    "RecordKind",
    "PASSWD_KIND",
    "GROUP_KIND",
    "parse_passwd_line",
    "parse_group_line",
    "decode_line",
    "is_record_line",
]
