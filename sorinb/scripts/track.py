"""
Replay positions through the geolocation tracker against a running API. Run from project root:
  python -m sorinb.scripts.track --file positions.jsonl --email me@example.com --password ...
  python -m sorinb.scripts.track --lat 44.43 --lng 26.10 --anonymous --ticks 3
Positions are JSON lines: {"lat": .., "lng": .., "accuracy": ..}.
"""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from sorinb.client.api import ApiClient, ApiError
from sorinb.client.sources import ReplayPositionSource, load_positions
from sorinb.client.tracker import GeoTracker, Position, SecureContext

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send tracker readings to a SorinB API.")
    parser.add_argument("--api-base", default=os.environ.get("SORINB_API_BASE", "http://localhost:3000"))
    parser.add_argument("--token", default=os.environ.get("SORINB_TOKEN", ""))
    parser.add_argument("--email")
    parser.add_argument("--password")
    parser.add_argument("--anonymous", action="store_true", help="Post to /gps without a user")
    parser.add_argument("--file", type=Path, help="JSON-lines file of positions")
    parser.add_argument("--lat", type=float)
    parser.add_argument("--lng", type=float)
    parser.add_argument("--loop", action="store_true", help="Restart the file when exhausted")
    parser.add_argument("--interval", type=float, default=60.0, help="Seconds between saves")
    parser.add_argument("--ticks", type=int, default=0, help="Stop after N timer ticks (0 = run until interrupted)")
    return parser


def _positions(args: argparse.Namespace) -> list[Position]:
    if args.file is not None:
        return load_positions(args.file)
    if args.lat is None or args.lng is None:
        raise ValueError("Provide --file or both --lat and --lng.")
    return [Position(lat=args.lat, lng=args.lng)]


async def run(args: argparse.Namespace) -> int:
    positions = _positions(args)
    # A fixed position is re-sent on every tick.
    source = ReplayPositionSource(positions, loop=args.loop or args.file is None)
    async with ApiClient(args.api_base, token=args.token) as api:
        if args.email and args.password and not args.anonymous:
            await api.login(args.email, args.password)
        sink = api.send_gps if args.anonymous else api.save_location
        tracker = GeoTracker(
            source,
            sink,
            context=SecureContext.from_url(args.api_base),
            alert=lambda message: logger.error("%s", message),
            interval=args.interval,
        )
        tracker.subscribe(
            lambda t: logger.debug("geo=%s save=%s", t.geo_status.value, t.save_status.value)
        )
        await tracker.start_tracking()
        try:
            if args.ticks > 0:
                await asyncio.sleep(args.interval * args.ticks + args.interval / 2)
            else:
                await asyncio.Event().wait()
        finally:
            await tracker.close()
        if tracker.save_error:
            logger.error("Last save failed: %s", tracker.save_error)
            return 1
        logger.info("Last saved at %s", tracker.last_saved_at)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except (ApiError, ValueError, OSError) as e:
        logger.error("Tracking failed: %s", e)
        return 1
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
