#!/usr/bin/env python3
"""
Command line entrypoint exposed as the 'user-lookup' script.

Exit codes: 0 found, 1 not found, 2 configuration or read error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from user_lookup.config import LookupSettings, load_settings
from user_lookup.exceptions import UserLookupError
from user_lookup.lookup import UserLookup
from user_lookup.utils.logger import configure, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2

_Command = Callable[[UserLookup, argparse.Namespace], Awaitable[int]]


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


async def cmd_user(lookup: UserLookup, args: argparse.Namespace) -> int:
    entry = await lookup.resolve_user(args.key)
    if entry is None:
        print(f"user '{args.key}' not found", file=sys.stderr)
        return EXIT_NOT_FOUND
    _emit(entry.to_dict())
    return EXIT_OK


async def cmd_group(lookup: UserLookup, args: argparse.Namespace) -> int:
    entry = await lookup.resolve_group(args.key)
    if entry is None:
        print(f"group '{args.key}' not found", file=sys.stderr)
        return EXIT_NOT_FOUND
    _emit(entry.to_dict())
    return EXIT_OK


async def cmd_users(lookup: UserLookup, args: argparse.Namespace) -> int:
    _emit([entry.to_dict() for entry in await lookup.users()])
    return EXIT_OK


async def cmd_groups(lookup: UserLookup, args: argparse.Namespace) -> int:
    _emit([entry.to_dict() for entry in await lookup.groups()])
    return EXIT_OK


async def cmd_id(lookup: UserLookup, args: argparse.Namespace) -> int:
    """Print uid, gid and group names, like id(1)."""
    user = await lookup.resolve_user(args.user)
    if user is None:
        print(f"user '{args.user}' not found", file=sys.stderr)
        return EXIT_NOT_FOUND
    groups = await lookup.groups_for_user(user.username)
    _emit(
        {
            "user": user.username,
            "uid": user.uid,
            "gid": user.gid,
            "groups": [{"name": g.name, "gid": g.gid} for g in groups],
        }
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="user-lookup", description="Look up Unix users and groups"
    )
    p.add_argument("--config", "-c", default=None, help="Path to an INI config file")
    p.add_argument("--passwd-file", default=None, help="passwd database to read")
    p.add_argument("--group-file", default=None, help="group database to read")
    p.add_argument(
        "--cache-seconds", type=float, default=None, help="Snapshot freshness in seconds"
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Fail on malformed lines instead of skipping them",
    )
    p.add_argument("--log-level", default=None, help="Log level for JSON logs on stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub_user = sub.add_parser("user", help="Show one user by name or uid")
    sub_user.add_argument("key")
    sub_user.set_defaults(func=cmd_user)

    sub_group = sub.add_parser("group", help="Show one group by name or gid")
    sub_group.add_argument("key")
    sub_group.set_defaults(func=cmd_group)

    sub_users = sub.add_parser("users", help="List all users")
    sub_users.set_defaults(func=cmd_users)

    sub_groups = sub.add_parser("groups", help="List all groups")
    sub_groups.set_defaults(func=cmd_groups)

    sub_id = sub.add_parser("id", help="Show a user's ids and group memberships")
    sub_id.add_argument("user")
    sub_id.set_defaults(func=cmd_id)

    return p


def _settings_from_args(args: argparse.Namespace) -> LookupSettings:
    return load_settings(
        args.config,
        passwd_file=args.passwd_file,
        group_file=args.group_file,
        cache_seconds=args.cache_seconds,
        malformed_lines="abort" if args.strict else None,
        log_level=args.log_level,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = _settings_from_args(args)
    except UserLookupError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_ERROR

    configure(level=settings.log_level)
    command: _Command = args.func
    lookup = UserLookup.from_settings(settings)
    try:
        return asyncio.run(command(lookup, args))
    except UserLookupError as exc:
        logger.error(
            "Lookup failed",
            event="user_lookup.cli.failed",
            command=args.cmd,
            error=str(exc),
        )
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
