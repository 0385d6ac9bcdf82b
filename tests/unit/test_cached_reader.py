"""Freshness, refresh and concurrency behaviour of the async readers."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from user_lookup.exceptions import ConfigurationError, IoFailure, MalformedRecord
from user_lookup.reader import GroupReader, PasswdReader
from user_lookup.snapshot import MalformedPolicy

CAROL = "carol:x:1002:1002:Carol:/home/carol:/bin/zsh\n"


@pytest.mark.asyncio
async def test_lookup_by_id_returns_entry(passwd_file, clock):
    reader = PasswdReader(0, passwd_file, clock=clock)

    entry = await reader.lookup_by_id(1000)

    assert entry is not None
    assert entry.username == "alice"
    assert entry.home_dir == "/home/alice"
    assert entry.shell == "/bin/bash"


@pytest.mark.asyncio
async def test_group_lookup_by_name(group_file, clock):
    reader = GroupReader(0, group_file, clock=clock)

    entry = await reader.lookup_by_name("devs")

    assert entry is not None
    assert entry.gid == 2000
    assert list(entry.members) == ["alice", "bob"]


@pytest.mark.asyncio
async def test_missing_keys_are_not_errors(passwd_file, clock):
    reader = PasswdReader(60, passwd_file, clock=clock)

    assert await reader.lookup_by_id(424242) is None
    assert await reader.lookup_by_name("nobody-here") is None
    assert await reader.get_username_by_uid(424242) is None
    assert await reader.get_uid_by_username("bob") == 1001


@pytest.mark.asyncio
async def test_zero_cache_time_reloads_every_query(passwd_file, clock, rewrite):
    reader = PasswdReader(0, passwd_file, clock=clock)

    assert await reader.lookup_by_name("carol") is None
    rewrite(passwd_file, passwd_file.read_text() + CAROL)
    carol = await reader.lookup_by_name("carol")

    assert carol is not None and carol.uid == 1002
    assert reader.reloads == 2


@pytest.mark.asyncio
async def test_positive_cache_time_serves_stale_snapshot(passwd_file, clock, rewrite):
    reader = PasswdReader(timedelta(seconds=30), passwd_file, clock=clock)

    before = await reader.all_entries()
    rewrite(passwd_file, CAROL)
    clock.advance(29)
    after = await reader.all_entries()

    assert after == before
    assert reader.reloads == 1

    clock.advance(1)
    assert [e.username for e in await reader.all_entries()] == ["carol"]
    assert reader.reloads == 2


@pytest.mark.asyncio
async def test_all_entries_returns_independent_lists(passwd_file, clock):
    reader = PasswdReader(60, passwd_file, clock=clock)

    first = await reader.all_entries()
    first.clear()

    assert len(await reader.all_entries()) == 3


@pytest.mark.asyncio
async def test_force_refresh_ignores_cache_time(passwd_file, clock, rewrite):
    reader = PasswdReader(3600, passwd_file, clock=clock)
    await reader.lookup_by_id(0)
    loaded = reader.last_loaded

    rewrite(passwd_file, CAROL)
    clock.advance(5)
    snapshot = await reader.force_refresh()

    assert reader.last_loaded == loaded + 5
    assert snapshot.loaded_at == reader.last_loaded
    assert await reader.lookup_by_id(1002) is not None
    assert await reader.lookup_by_id(0) is None


@pytest.mark.asyncio
async def test_async_iteration_walks_a_snapshot(group_file, clock):
    reader = GroupReader(60, group_file, clock=clock)

    names = [group.name async for group in reader]

    assert names == ["root", "users", "alice", "bob", "devs"]


@pytest.mark.asyncio
async def test_missing_file_raises_io_failure(tmp_path, clock):
    reader = PasswdReader(0, tmp_path / "absent", clock=clock)

    with pytest.raises(IoFailure) as excinfo:
        await reader.lookup_by_id(0)

    assert excinfo.value.path == str(tmp_path / "absent")
    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
    assert reader.failures == 1


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_snapshot(passwd_file, clock):
    reader = PasswdReader(10, passwd_file, clock=clock)
    await reader.lookup_by_id(0)
    loaded = reader.last_loaded
    snapshot = await reader.snapshot()

    passwd_file.unlink()
    clock.advance(10)
    with pytest.raises(IoFailure):
        await reader.lookup_by_id(0)

    assert reader.last_loaded == loaded
    assert reader.is_stale()
    assert reader._snapshot is snapshot

    # the next query retries rather than serving the stale snapshot
    with pytest.raises(IoFailure):
        await reader.lookup_by_id(0)
    assert reader.failures == 2


@pytest.mark.asyncio
async def test_skip_policy_drops_malformed_lines(passwd_file, clock, rewrite):
    rewrite(passwd_file, "root:x:0:0:root:/root:/bin/bash\nbad:x:NaN:0::/:\n" + CAROL)
    reader = PasswdReader(0, passwd_file, clock=clock)

    entries = await reader.all_entries()

    assert [e.username for e in entries] == ["root", "carol"]
    assert reader.stats()["skipped"] == 1


@pytest.mark.asyncio
async def test_abort_policy_fails_refresh_and_keeps_last_good(passwd_file, clock, rewrite):
    reader = PasswdReader(0, passwd_file, policy=MalformedPolicy.ABORT, clock=clock)
    assert await reader.lookup_by_name("alice") is not None
    loaded = reader.last_loaded

    rewrite(passwd_file, "root:x:0:0:root:/root:/bin/bash\nbad:x:NaN:0::/:\n")
    clock.advance(1)
    with pytest.raises(MalformedRecord) as excinfo:
        await reader.lookup_by_name("alice")

    assert excinfo.value.field == "uid"
    assert excinfo.value.line_number == 2
    assert reader.last_loaded == loaded
    assert len(reader._snapshot) == 3


@pytest.mark.asyncio
async def test_concurrent_queries_share_one_reload(passwd_file, clock):
    reader = PasswdReader(60, passwd_file, clock=clock)

    results = await asyncio.gather(*(reader.lookup_by_id(1000) for _ in range(25)))

    assert reader.reloads == 1
    assert all(r is results[0] for r in results)


@pytest.mark.asyncio
async def test_concurrent_queries_without_cache_reload_at_most_twice(passwd_file, clock):
    reader = PasswdReader(0, passwd_file, clock=clock)

    snapshots = await asyncio.gather(*(reader.snapshot() for _ in range(25)))

    assert 1 <= reader.reloads <= 2
    assert {s.generation for s in snapshots} <= {1, 2}
    for snapshot in snapshots:
        assert set(snapshot.by_id.values()) == set(snapshot.entries)


@pytest.mark.parametrize("cache_time", [-1, float("nan"), float("inf")])
def test_invalid_cache_time_rejected(passwd_file, cache_time):
    with pytest.raises(ConfigurationError):
        PasswdReader(cache_time, passwd_file)


def test_unknown_policy_rejected(passwd_file):
    with pytest.raises(ConfigurationError):
        PasswdReader(0, passwd_file, policy="ignore")


def test_default_paths():
    assert PasswdReader().path == "/etc/passwd"
    assert GroupReader().path == "/etc/group"


LATIN1_LINE = b"jose:x:1003:1003:Jos\xe9:/home/jose:/bin/sh\n"


@pytest.mark.asyncio
async def test_undecodable_line_is_skipped(passwd_file, clock):
    passwd_file.write_bytes(
        b"root:x:0:0:root:/root:/bin/bash\n" + LATIN1_LINE + CAROL.encode()
    )
    reader = PasswdReader(0, passwd_file, clock=clock)

    assert await reader.lookup_by_id(1002) is not None
    assert await reader.lookup_by_name("jose") is None
    assert reader.stats()["entries"] == 2
    assert reader.stats()["skipped"] == 1


@pytest.mark.asyncio
async def test_undecodable_line_aborts_under_abort_policy(passwd_file, clock):
    passwd_file.write_bytes(b"root:x:0:0:root:/root:/bin/bash\n" + LATIN1_LINE)
    reader = PasswdReader(0, passwd_file, policy=MalformedPolicy.ABORT, clock=clock)

    with pytest.raises(MalformedRecord) as excinfo:
        await reader.lookup_by_id(0)

    assert excinfo.value.field == "line"
    assert excinfo.value.line_number == 2
    assert isinstance(excinfo.value.__cause__, MalformedRecord)


@pytest.mark.asyncio
async def test_unicode_line_separators_stay_inside_a_record(passwd_file, clock, rewrite):
    rewrite(
        passwd_file,
        "bob:x:1001:1001:Bob\u2028Builder\x0c\x85:/home/bob:/bin/sh\r\n" + CAROL,
    )
    reader = PasswdReader(0, passwd_file, clock=clock)

    bob = await reader.lookup_by_id(1001)

    assert bob is not None
    assert bob.gecos == "Bob\u2028Builder\x0c\x85"
    assert bob.shell == "/bin/sh"
    assert reader.stats()["entries"] == 2
    assert reader.stats()["skipped"] == 0
