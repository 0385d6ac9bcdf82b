"""Immutable records parsed from the passwd and group databases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PasswdEntry:
    """One row of ``/etc/passwd``."""

    username: str
    passwd: str
    uid: int
    gid: int
    gecos: str
    home_dir: str
    shell: str

    def to_line(self) -> str:
        """Serialize back to the colon-delimited on-disk form."""
        return ":".join(
            (
                self.username,
                self.passwd,
                str(self.uid),
                str(self.gid),
                self.gecos,
                self.home_dir,
                self.shell,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "uid": self.uid,
            "gid": self.gid,
            "gecos": self.gecos,
            "home_dir": self.home_dir,
            "shell": self.shell,
        }


@dataclass(frozen=True)
class GroupEntry:
    """One row of ``/etc/group``."""

    name: str
    passwd: str
    gid: int
    members: tuple[str, ...] = field(default_factory=tuple)

    def to_line(self) -> str:
        return ":".join((self.name, self.passwd, str(self.gid), ",".join(self.members)))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "gid": self.gid, "members": list(self.members)}


__all__ = ["PasswdEntry", "GroupEntry"]
