"""Command line entry point.

Examples::

    vinsync ingest feed.json --batch-tag nightly-2026-10-19
    vinsync lookup --plate AA111BB
    vinsync serve --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from aiohttp import web

from vinsync.config import VinSyncConfig
from vinsync.exceptions import VinSyncError
from vinsync.models.record import parse_records
from vinsync.service import VinService
from vinsync.web import create_managed_app


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


async def _ingest(config: VinSyncConfig, path: Path, batch_tag: str | None) -> int:
    records = parse_records(json.loads(path.read_text(encoding="utf-8")))
    async with VinService(config) as service:
        outcome = await service.process_batch(records, batch_tag)
    _print_json(outcome.model_dump(mode="json", by_alias=True))
    return 1 if outcome.errors else 0


async def _lookup(config: VinSyncConfig, vin: str | None, plate: str | None) -> int:
    async with VinService(config) as service:
        entry = await service.get_by_vin(vin) if vin is not None else await service.get_by_plate(plate or "")
    if entry is None:
        print("not found", file=sys.stderr)
        return 1
    _print_json(entry.model_dump(mode="json"))
    return 0


async def _clear(config: VinSyncConfig) -> int:
    async with VinService(config) as service:
        deleted = await service.clear_all()
    _print_json({"deleted": deleted})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vinsync", description="VIN/plate reconciliation against Redis.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--redis-url", default=None, help="Override VINSYNC_REDIS_URL.")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    ingest = sub.add_parser("ingest", help="Reconcile a JSON file of records.")
    ingest.add_argument("path", type=Path)
    ingest.add_argument("--batch-tag", default=None)

    lookup = sub.add_parser("lookup", help="Look up an association.")
    group = lookup.add_mutually_exclusive_group(required=True)
    group.add_argument("--vin")
    group.add_argument("--plate")

    clear = sub.add_parser("clear", help="Delete every association under the key prefix.")
    clear.add_argument("--yes", action="store_true", help="Confirm the wipe.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    overrides: dict[str, Any] = {}
    if args.redis_url:
        overrides["redis_url"] = args.redis_url
    try:
        config = VinSyncConfig.from_env(**overrides)

        if args.command == "serve":
            web.run_app(
                create_managed_app(config),
                host=args.host or config.http_host,
                port=args.port or config.http_port,
            )
            return 0
        if args.command == "ingest":
            return asyncio.run(_ingest(config, args.path, args.batch_tag))
        if args.command == "lookup":
            return asyncio.run(_lookup(config, args.vin, args.plate))
        if args.command == "clear":
            if not args.yes:
                print("Refusing to clear without --yes", file=sys.stderr)
                return 2
            return asyncio.run(_clear(config))
    except (VinSyncError, OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
