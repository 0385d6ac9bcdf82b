"""
Shared fixtures: account database files in tmp_path and a controllable clock.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

PASSWD_TEXT = """\
root:x:0:0:root:/root:/bin/bash
alice:x:1000:1000:Alice:/home/alice:/bin/bash
bob:x:1001:1001:Bob Builder,,,:/home/bob:/bin/sh
"""

GROUP_TEXT = """\
root:x:0:
users:x:100:alice
alice:x:1000:
bob:x:1001:
devs:x:2000:alice,bob
"""


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def passwd_file(tmp_path: Path) -> Path:
    path = tmp_path / "passwd"
    path.write_text(PASSWD_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def group_file(tmp_path: Path) -> Path:
    path = tmp_path / "group"
    path.write_text(GROUP_TEXT, encoding="utf-8")
    return path


@pytest.fixture
def rewrite() -> Callable[[Path, str], None]:
    """Replace a database file's content."""

    def _rewrite(path: Path, content: str) -> None:
        path.write_text(content, encoding="utf-8")

    return _rewrite
