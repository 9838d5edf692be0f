"""Run the SyncFit sync pipeline from the command line."""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from dataclasses import asdict

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.logs import ensure_logger, get_logger
from services.app_context import build_app_context
from storage.config import load_config, update_config
from storage.db import init_db


logger = get_logger("cli")


async def _run(command: str, interval: float) -> int:
    ctx = build_app_context()
    await ctx.start(poll=command == "watch")
    try:
        if command == "sync":
            if not await ctx.reliability.manual_sync():
                logger.warning("Sync not started")
        elif command == "watch":
            ctx.health.start_monitoring(interval)
            while True:
                await asyncio.sleep(3600)
        print(json.dumps(ctx.reliability.status(), indent=2))
    finally:
        await ctx.aclose()
    return 0


def _configure(args) -> int:
    changes = {}
    if args.api_url is not None:
        changes["api_base_url"] = args.api_url or None
    if args.probe_url is not None:
        changes["probe_url"] = args.probe_url or None
    cfg = update_config(**changes) if changes else load_config()
    print(json.dumps(asdict(cfg), indent=2, sort_keys=True))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__ or "")
    parser.add_argument(
        "command",
        choices=("status", "sync", "watch", "config"),
        nargs="?",
        default="status",
    )
    parser.add_argument("--interval", type=float, default=60.0, help="Health check interval for watch")
    parser.add_argument("--api-url", help="Override the API base URL (empty string clears it)")
    parser.add_argument("--probe-url", help="Override the reachability probe URL (empty string clears it)")
    args = parser.parse_args(argv)

    if args.command == "config":
        return _configure(args)

    ensure_logger()
    init_db()
    try:
        return asyncio.run(_run(args.command, args.interval))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
