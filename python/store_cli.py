#!/usr/bin/env python3
"""
Store CLI: inspect the key/value (cstore) and file (r1fs) services.

Usage:
  python -m store_cli get <key>
  python -m store_cli set <key> <json>
  python -m store_cli list [prefix] [--cursor C] [--limit N]
  python -m store_cli hget <hkey> <field>
  python -m store_cli hset <hkey> <field> <json>
  python -m store_cli hgetall <hkey>
  python -m store_cli ls [dir]
  python -m store_cli cat <path>
  python -m store_cli add-yaml <file.json> [--filename NAME]
  python -m store_cli get-yaml <cid>

Options:
  --mode <auto|http|mock>  Runtime mode (or R1_RUNTIME_MODE)

Mock mode keeps data in process, so only seeded content (R1_MOCK_CSTORE_SEED,
R1_MOCK_R1FS_SEED) survives between invocations.
"""
import argparse
import asyncio
import json
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

# Allow running from repo root or from python/
sys.path.insert(0, str(Path(__file__).resolve().parent))

from common.errors import StoreError
from cstore import env as cstore_env
from r1fs import env as r1fs_env

CSTORE_COMMANDS = ("get", "set", "list", "hget", "hset", "hgetall")


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def _print(value: Any) -> None:
    print(json.dumps(_jsonable(value), indent=2, ensure_ascii=False, default=str))


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as exc:
        raise SystemExit(f"invalid JSON value: {exc}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Store CLI - inspect cstore and r1fs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--mode",
        default=None,
        choices=["auto", "http", "mock"],
        help="Runtime mode (default: $R1_RUNTIME_MODE or auto)",
    )
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("get", help="Read one key")
    p.add_argument("key")
    p = sub.add_parser("set", help="Write one key (value is JSON)")
    p.add_argument("key")
    p.add_argument("value")
    p = sub.add_parser("list", help="List keys by prefix")
    p.add_argument("prefix", nargs="?", default="")
    p.add_argument("--cursor", default="")
    p.add_argument("--limit", type=int, default=0)
    p = sub.add_parser("hget", help="Read one hash field")
    p.add_argument("hkey")
    p.add_argument("field")
    p = sub.add_parser("hset", help="Write one hash field (value is JSON)")
    p.add_argument("hkey")
    p.add_argument("field")
    p.add_argument("value")
    p = sub.add_parser("hgetall", help="Read every field of a hash")
    p.add_argument("hkey")

    p = sub.add_parser("ls", help="List files under a directory")
    p.add_argument("dir", nargs="?", default="/")
    p.add_argument("--cursor", default="")
    p.add_argument("--limit", type=int, default=0)
    p = sub.add_parser("cat", help="Print a file to stdout")
    p.add_argument("path")
    p = sub.add_parser("add-yaml", help="Store a JSON file as a structured document")
    p.add_argument("file")
    p.add_argument("--filename", default="")
    p = sub.add_parser("get-yaml", help="Fetch a structured document by cid")
    p.add_argument("cid")
    return parser


async def run_cstore(args: argparse.Namespace) -> None:
    client, _ = cstore_env.from_env(args.mode)
    cmd = args.command
    if cmd == "get":
        item = await client.get(args.key)
        if item is None:
            raise SystemExit(f"Key not found: {args.key}")
        _print(item)
    elif cmd == "set":
        _print(await client.set(args.key, _parse_json(args.value)))
    elif cmd == "list":
        _print(await client.list(args.prefix, cursor=args.cursor, limit=args.limit))
    elif cmd == "hget":
        item = await client.hget(args.hkey, args.field)
        if item is None:
            raise SystemExit(f"Field not found: {args.hkey}/{args.field}")
        _print(item)
    elif cmd == "hset":
        _print(await client.hset(args.hkey, args.field, _parse_json(args.value)))
    elif cmd == "hgetall":
        items = await client.hgetall(args.hkey)
        _print([asdict(i) for i in items] if items else None)


async def run_r1fs(args: argparse.Namespace) -> None:
    client, _ = r1fs_env.from_env(args.mode)
    cmd = args.command
    if cmd == "ls":
        _print(await client.list(args.dir, cursor=args.cursor, limit=args.limit))
    elif cmd == "cat":
        sys.stdout.buffer.write(await client.download(args.path))
        sys.stdout.flush()
    elif cmd == "add-yaml":
        value = _parse_json(Path(args.file).read_text(encoding="utf-8"))
        cid = await client.add_yaml(value, filename=args.filename or Path(args.file).name)
        _print({"cid": cid})
    elif cmd == "get-yaml":
        doc = await client.get_yaml(args.cid)
        _print(doc)


def main(argv: Any = None) -> int:
    parser = build_parser()
    parsed = parser.parse_args(argv)

    if not parsed.command:
        parser.print_help()
        return 0

    runner = run_cstore if parsed.command in CSTORE_COMMANDS else run_r1fs
    try:
        asyncio.run(runner(parsed))
    except (StoreError, OSError) as e:
        print(str(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
