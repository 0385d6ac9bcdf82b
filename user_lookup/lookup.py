"""Combined user and group queries over a pair of cached readers."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from .models import GroupEntry, PasswdEntry
from .reader import GroupReader, PasswdReader
from .snapshot import MalformedPolicy

if TYPE_CHECKING:
    from .config.schema import LookupSettings


class UserLookup:
    """Query facade over one passwd reader and one group reader.

    All caching lives in the readers; composite queries issue one lookup
    against each of them.
    """

    def __init__(self, passwd_reader: PasswdReader, group_reader: GroupReader) -> None:
        self.passwd_reader = passwd_reader
        self.group_reader = group_reader

    @classmethod
    def create(
        cls,
        cache_time: float | int | timedelta = 0.0,
        *,
        passwd_path: str | Path | None = None,
        group_path: str | Path | None = None,
        policy: MalformedPolicy | str = MalformedPolicy.SKIP,
    ) -> UserLookup:
        return cls(
            PasswdReader(cache_time, passwd_path, policy=policy),
            GroupReader(cache_time, group_path, policy=policy),
        )

    @classmethod
    def from_settings(cls, settings: LookupSettings) -> UserLookup:
        return cls.create(
            settings.cache_seconds,
            passwd_path=settings.passwd_file,
            group_path=settings.group_file,
            policy=settings.malformed_lines,
        )

    # ------------------------------------------------------------------
    # Pass-through lookups
    # ------------------------------------------------------------------
    async def user_by_uid(self, uid: int) -> PasswdEntry | None:
        return await self.passwd_reader.lookup_by_id(uid)

    async def user_by_name(self, username: str) -> PasswdEntry | None:
        return await self.passwd_reader.lookup_by_name(username)

    async def group_by_gid(self, gid: int) -> GroupEntry | None:
        return await self.group_reader.lookup_by_id(gid)

    async def group_by_name(self, name: str) -> GroupEntry | None:
        return await self.group_reader.lookup_by_name(name)

    async def users(self) -> list[PasswdEntry]:
        return await self.passwd_reader.all_entries()

    async def groups(self) -> list[GroupEntry]:
        return await self.group_reader.all_entries()

    async def refresh(self) -> None:
        """Force both readers to reload."""
        await asyncio.gather(self.passwd_reader.force_refresh(), self.group_reader.force_refresh())

    # ------------------------------------------------------------------
    # Composites
    # ------------------------------------------------------------------
    async def resolve_user(self, token: str | int) -> PasswdEntry | None:
        """Look a user up by name, falling back to a numeric uid.

        Mirrors ``id``/``chown``: a name takes precedence over a number.
        """
        if isinstance(token, int):
            return await self.user_by_uid(token)
        entry = await self.user_by_name(token)
        if entry is None and token.isascii() and token.isdigit():
            entry = await self.user_by_uid(int(token))
        return entry

    async def resolve_group(self, token: str | int) -> GroupEntry | None:
        if isinstance(token, int):
            return await self.group_by_gid(token)
        entry = await self.group_by_name(token)
        if entry is None and token.isascii() and token.isdigit():
            entry = await self.group_by_gid(int(token))
        return entry

    async def primary_group(self, user: PasswdEntry | str | int) -> GroupEntry | None:
        if not isinstance(user, PasswdEntry):
            resolved = await self.resolve_user(user)
            if resolved is None:
                return None
            user = resolved
        return await self.group_by_gid(user.gid)

    async def primary_group_name(self, uid: int) -> str | None:
        group = await self.primary_group(uid)
        return group.name if group is not None else None

    async def groups_for_user(self, username: str) -> list[GroupEntry]:
        """Primary group first, then every group listing ``username``.

        Groups are deduplicated by gid. An unknown user still gets the groups
        that name it as a member.
        """
        user = await self.user_by_name(username)
        snapshot = await self.group_reader.snapshot()

        result: list[GroupEntry] = []
        seen: set[int] = set()
        if user is not None:
            primary = snapshot.by_id.get(user.gid)
            if primary is not None:
                result.append(primary)
                seen.add(primary.gid)
        for group in snapshot.entries:
            if username in group.members and group.gid not in seen:
                result.append(group)
                seen.add(group.gid)
        return result


__all__ = ["UserLookup"]
