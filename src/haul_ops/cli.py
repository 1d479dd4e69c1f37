"""Haul ops command line interface.

Operational tools for:
- Running the API server
- Inspecting the local offline queues
- Flushing the local offline queues to the sync endpoints
- Measuring a GPS path

Usage:
    python -m haul_ops.cli serve --port 8000
    python -m haul_ops.cli queue-status --queue-dir .haul_ops_queue
    python -m haul_ops.cli queue-flush --base-url https://ops.example.com
    python -m haul_ops.cli path-distance pings.jsonl
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections import Counter
from typing import Any, Callable, TextIO

from haul_ops.calculators.geo import bearing_degrees, format_coordinates, is_stationary
from haul_ops.calculators.payroll import format_peso, gps_total
from haul_ops.calculators.trip_metrics import trip_distance
from haul_ops.config import get_settings
from haul_ops.sync.config import QueueConfig, SyncEndpointConfig
from haul_ops.sync.queue import GPSBatchQueue, OfflineQueue, OfflineQueueItem
from haul_ops.sync.storage import JsonFileQueueStorage
from haul_ops.sync.transport import HttpSyncTransport


QUEUE_KEYS = (QueueConfig().storage_key, QueueConfig.gps().storage_key)


def read_points(stream: TextIO) -> list[tuple[float, float]]:
    """(lat, lon) pairs from JSON lines with latitude/longitude or lat/lon keys."""
    points = []
    for line_no, line in enumerate(stream, start=1):
        line = line.strip()
        if not line:
            continue
        record: dict[str, Any] = json.loads(line)
        lat = record.get("latitude", record.get("lat"))
        lon = record.get("longitude", record.get("lon"))
        if lat is None or lon is None:
            raise ValueError(f"line {line_no}: missing latitude/longitude")
        points.append((float(lat), float(lon)))
    return points


class HaulOpsCli:
    """Haul ops Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        settings = get_settings()
        parser = argparse.ArgumentParser(
            prog="python -m haul_ops.cli",
            description="Haul ops operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # serve command
        serve = subparsers.add_parser("serve", help="Run the API server")
        serve.add_argument("--host", default=settings.host, help="Bind address")
        serve.add_argument("--port", type=int, default=settings.port, help="Bind port")
        serve.add_argument("--reload", action="store_true", help="Reload on code changes")

        # queue-status command
        status = subparsers.add_parser(
            "queue-status",
            help="Show what is waiting in the local offline queues",
        )
        status.add_argument(
            "--queue-dir",
            default=settings.queue_dir,
            help="Directory holding the queue files",
        )

        # queue-flush command
        flush = subparsers.add_parser(
            "queue-flush",
            help="Send queued writes to the sync endpoints",
        )
        flush.add_argument(
            "--queue-dir",
            default=settings.queue_dir,
            help="Directory holding the queue files",
        )
        flush.add_argument(
            "--base-url",
            default=settings.sync_base_url,
            help="Server root for the sync endpoints",
        )
        flush.add_argument(
            "--timeout",
            type=float,
            default=None,
            help="Request timeout in seconds",
        )

        # path-distance command
        path = subparsers.add_parser(
            "path-distance",
            help="Distance over GPS pings read as JSON lines",
        )
        path.add_argument(
            "file",
            nargs="?",
            type=argparse.FileType("r", encoding="utf-8"),
            default=sys.stdin,
            help="JSON lines file (default: stdin)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "serve": self._cmd_serve,
            "queue-status": self._cmd_queue_status,
            "queue-flush": self._cmd_queue_flush,
            "path-distance": self._cmd_path_distance,
        }

        handler = handlers.get(parsed.command)
        if handler:
            return handler(parsed)

        print(f"Unknown command: {parsed.command}", file=sys.stderr)
        return 1

    def _cmd_serve(self, args: argparse.Namespace) -> int:
        """Run uvicorn."""
        import uvicorn

        uvicorn.run(
            "haul_ops.api.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return 0

    def _cmd_queue_status(self, args: argparse.Namespace) -> int:
        """Summarize queued items by type and status."""
        storage = JsonFileQueueStorage(args.queue_dir)
        print(f"Offline queues in {args.queue_dir}")
        print("=" * 40)

        for key in QUEUE_KEYS:
            items = [OfflineQueueItem.from_dict(d) for d in storage.get(key)]
            print(f"\n{key}: {len(items)} item(s)")
            counts = Counter((item.type.value, item.status.value) for item in items)
            for (kind, item_status), count in sorted(counts.items()):
                print(f"  {kind:<12} {item_status:<10} {count:>5}")
            for item in items:
                if item.error:
                    print(f"  ! {item.id}: {item.error}")
        return 0

    def _cmd_queue_flush(self, args: argparse.Namespace) -> int:
        """Flush both queues once."""
        endpoint = SyncEndpointConfig(base_url=args.base_url, timeout_seconds=args.timeout)
        return asyncio.run(self._flush(args.queue_dir, endpoint))

    async def _flush(self, queue_dir: str, endpoint: SyncEndpointConfig) -> int:
        storage = JsonFileQueueStorage(queue_dir)
        transport = HttpSyncTransport(endpoint)
        try:
            writes = await OfflineQueue(storage, transport).flush()
            pings = await GPSBatchQueue(storage, transport).flush_all()
        finally:
            await transport.aclose()

        print(f"Writes: {writes.synced} synced, {writes.failed} failed")
        print(f"GPS:    {pings.synced} synced, {pings.failed} failed")
        for error in writes.errors + pings.errors:
            print(f"  ! {error}", file=sys.stderr)
        return 1 if writes.failed or pings.failed else 0

    def _cmd_path_distance(self, args: argparse.Namespace) -> int:
        """Print the distance and GPS cost of a ping path."""
        try:
            points = read_points(args.file)
        except ValueError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        distance = trip_distance(points)
        print(f"Points:   {len(points)}")
        print(f"Distance: {distance} km")
        print(f"Cost:     {format_peso(gps_total(distance))}")
        if len(points) >= 2:
            first, last = points[0], points[-1]
            print(f"From:     {format_coordinates(*first)}")
            print(f"To:       {format_coordinates(*last)}")
            print(f"Heading:  {bearing_degrees(*first, *last):.0f} deg")
        if is_stationary(float(distance)):
            print("Status:   stationary")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = HaulOpsCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
