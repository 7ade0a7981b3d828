import logging
import time
from typing import Any, Callable, Iterator

import requests

from display.config import POLL_INTERVAL_SECONDS, REQUEST_TIMEOUT_SECONDS, SERVER_URL
from display.detector import Decision
from display.identity import extract_identity
from display.records import record_key, record_timestamp, unwrap_record
from display.slot import DisplaySlot

logger = logging.getLogger(__name__)


class PollError(Exception):
    """A poll cycle failed in transport or got a non-2xx answer."""


class LatestRecordClient:
    def __init__(
        self,
        base_url: str = SERVER_URL,
        *,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def latest_url(self) -> str:
        return f"{self.base_url}/attendance/latest"

    def fetch_latest(self) -> Any | None:
        """
        Returns the decoded JSON body, or None when the server has no records.
        Raises PollError for anything else that is not a 2xx.
        """
        try:
            res = self.session.get(
                self.latest_url,
                params={"t": int(time.time() * 1000)},
                headers={"Accept": "application/json", "Cache-Control": "no-cache"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PollError(f"Request to {self.latest_url} failed: {e}") from e

        if res.status_code == 404:
            return None
        if not res.ok:
            raise PollError(f"Latest endpoint returned {res.status_code}")

        try:
            return res.json()
        except ValueError as e:
            raise PollError("Latest endpoint returned invalid JSON") from e

    def close(self) -> None:
        self.session.close()


def ticks(
    interval: float,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[int]:
    """
    Infinite fixed-rate tick sequence: 0 right away, then one every interval.

    Each call starts a fresh schedule. When a cycle overruns, the schedule is
    re-anchored instead of firing the missed ticks back to back.
    """
    anchor = clock()
    n = 0
    while True:
        yield n
        n += 1
        delay = anchor + n * interval - clock()
        if delay > 0:
            sleep(delay)
        else:
            anchor = clock() - n * interval


class Poller:
    def __init__(
        self,
        slot: DisplaySlot,
        fetch: Callable[[], Any],
        *,
        interval: float = POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.slot = slot
        self.fetch = fetch
        self.interval = interval
        self.clock = clock or slot.clock
        self.sleep = sleep
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            raise RuntimeError("Poller is already running for this display slot.")
        self._running = True
        logger.info("Polling every %.2fs", self.interval)

    def stop(self) -> None:
        if self._running:
            logger.info("Polling stopped")
        self._running = False

    def reset(self) -> None:
        self.slot.reset()

    def poll_once(self) -> Decision | None:
        """
        One poll -> detect -> display cycle.

        Never raises: transport failures and payloads that cannot be handled
        are logged and the cycle is skipped, leaving the slot as it was.
        """
        self.slot.expire_if_due(self.clock())

        try:
            payload = self.fetch()
        except PollError as e:
            logger.warning("Poll skipped: %s", e)
            return None

        if payload is None:
            return None

        try:
            return self._handle(payload)
        except Exception:
            logger.exception("Poll skipped: could not handle latest payload")
            return None

    def _handle(self, payload: Any) -> Decision | None:
        record = unwrap_record(payload)
        if record is None:
            logger.debug("Ignoring latest payload without a record object")
            return None

        return self.slot.observe(
            record_key(record),
            record_timestamp(record),
            extract_identity(record),
            now=self.clock(),
        )

    def run(self, max_ticks: int | None = None) -> None:
        self.start()
        try:
            for n in ticks(self.interval, clock=self.clock, sleep=self.sleep):
                if not self._running:
                    break
                if max_ticks is not None and n >= max_ticks:
                    break
                self.poll_once()
        finally:
            self._running = False
