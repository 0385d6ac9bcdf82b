"""Cached lookups of Unix users and groups from ``/etc/passwd`` and ``/etc/group``.

Readers keep a parsed snapshot of their file and reload it once it is older
than the configured cache time. A cache time of ``0`` disables caching::

    from user_lookup import PasswdReader

    reader = PasswdReader(cache_time=0)
    name = await reader.get_username_by_uid(1000)
"""

from __future__ import annotations

from .exceptions import ConfigurationError, IoFailure, MalformedRecord, UserLookupError
from .lookup import UserLookup
from .models import GroupEntry, PasswdEntry
from .parsers import parse_group_line, parse_passwd_line
from .reader import CachedReader, GroupReader, PasswdReader
from .snapshot import MalformedPolicy, Snapshot

__all__ = [
    "CachedReader",
    "ConfigurationError",
    "GroupEntry",
    "GroupReader",
    "IoFailure",
    "MalformedPolicy",
    "MalformedRecord",
    "PasswdEntry",
    "PasswdReader",
    "Snapshot",
    "UserLookup",
    "UserLookupError",
    "parse_group_line",
    "parse_passwd_line",
]
