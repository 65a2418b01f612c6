#!/usr/bin/env python3
"""Watch the dashboard snapshot from a terminal.

Starts a :class:`arbidash.Dashboard`, prints a summary line on every new
cycle (and the countdown on every tick with ``--ticks``), and exits after
``--cycles`` completed cycles or on Ctrl-C.

Usage
-----
Set environment variables and run::

    export ARBIDASH_BASE_URL="https://api.example.com"
    export ARBIDASH_AUTH_TOKEN="<bearer token>"
    python scripts/watch_dashboard.py

Options::

    --cycles N       Stop after N completed cycles (default: run forever)
    --json           Print the full snapshot as JSON after each cycle
    --ticks          Also print the countdown on every tick
    --verbose, -v    Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from arbidash import Dashboard, DashboardConfig, EnvTokenSource, Snapshot  # noqa: E402


def _summary(snapshot: Snapshot) -> str:
    parts = [
        f"pairs={len(snapshot.pair_data)}",
        f"tracked={len(snapshot.track_data)}",
        f"sentiment={len(snapshot.sentiment_data)}",
        f"next={snapshot.countdown_display}",
    ]
    if snapshot.error:
        parts.append(f"error={snapshot.error!r}")
    return "  ".join(parts)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Print arbidash snapshots as they refresh.")
    parser.add_argument("--cycles", type=int, default=0, help="Stop after N completed cycles")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Print full snapshots as JSON")
    parser.add_argument("--ticks", action="store_true", help="Print the countdown on every tick")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = DashboardConfig.from_env()
    done = asyncio.Event()
    completed = 0
    last_refresh: float | None = None

    def _on_snapshot(snapshot: Snapshot) -> None:
        nonlocal completed, last_refresh
        if snapshot.last_refresh_at != last_refresh and not snapshot.refreshing:
            last_refresh = snapshot.last_refresh_at
            completed += 1
            if args.json_mode:
                print(json.dumps(snapshot.model_dump(mode="json", by_alias=True), indent=2))
            else:
                print(_summary(snapshot))
            if args.cycles and completed >= args.cycles:
                done.set()
        elif args.ticks:
            print(f"  next refresh in {snapshot.countdown_display}", end="\r", flush=True)

    async with Dashboard(config, EnvTokenSource()) as dashboard:
        unsubscribe = dashboard.subscribe(_on_snapshot)
        try:
            await done.wait()
        finally:
            unsubscribe()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(130)
