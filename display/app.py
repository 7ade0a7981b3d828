import argparse
import logging

from display.config import (
    DWELL_SECONDS,
    LOG_LEVEL,
    POLL_INTERVAL_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    SERVER_URL,
)
from display.poller import LatestRecordClient, Poller
from display.renderer import ConsoleRenderer
from display.slot import DisplaySlot

logger = logging.getLogger("display")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rollcall-display",
        description="Show the latest scanned attendee on an unattended screen.",
    )
    parser.add_argument("--server", default=SERVER_URL, help="Base URL of the attendance server.")
    parser.add_argument("--interval", type=float, default=POLL_INTERVAL_SECONDS, help="Poll interval in seconds.")
    parser.add_argument("--dwell", type=float, default=DWELL_SECONDS, help="Seconds an identity stays on screen.")
    parser.add_argument("--timeout", type=float, default=REQUEST_TIMEOUT_SECONDS, help="HTTP timeout per poll.")
    parser.add_argument("--tk", action="store_true", help="Open a fullscreen window instead of printing.")
    parser.add_argument("--windowed", action="store_true", help="With --tk, do not go fullscreen.")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    client = LatestRecordClient(args.server, timeout=args.timeout)
    logger.info("Display polling %s", client.latest_url)

    try:
        if args.tk:
            from display.tk_renderer import TkRenderer

            renderer = TkRenderer(fullscreen=not args.windowed)
            slot = DisplaySlot(renderer, dwell_seconds=args.dwell)
            renderer.run(Poller(slot, client.fetch_latest, interval=args.interval))
        else:
            renderer = ConsoleRenderer()
            slot = DisplaySlot(renderer, dwell_seconds=args.dwell)
            renderer.clear()
            poller = Poller(slot, client.fetch_latest, interval=args.interval)
            try:
                poller.run()
            except KeyboardInterrupt:
                poller.stop()
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
