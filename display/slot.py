import logging
import time
from dataclasses import dataclass
from typing import Callable, Literal

from display.config import DWELL_SECONDS
from display.detector import Decision, SlotMemory, detect
from display.identity import DisplayedIdentity
from display.renderer import Renderer

logger = logging.getLogger(__name__)

SlotState = Literal["idle", "showing"]


@dataclass(frozen=True)
class PendingExpiry:
    record_id: str
    deadline: float  # clock seconds


class DisplaySlot:
    """
    The single on-screen slot of the kiosk.

    idle -> showing on a NEW record, showing -> idle once the dwell deadline
    passes or on reset. The dwell deadline is the only timer: entering
    showing always drops the previous deadline before setting a new one, so
    an older record can never expire a newer one.
    """

    def __init__(
        self,
        renderer: Renderer | None = None,
        *,
        dwell_seconds: float = DWELL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.renderer = renderer
        self.dwell_seconds = dwell_seconds
        self.clock = clock
        self.memory = SlotMemory()
        self.current: DisplayedIdentity | None = None
        self.pending_expiry: PendingExpiry | None = None

    @property
    def state(self) -> SlotState:
        return "showing" if self.current is not None else "idle"

    def observe(
        self,
        record_id: str,
        timestamp: int | None,
        identity: DisplayedIdentity,
        now: float | None = None,
    ) -> Decision:
        decision = detect(self.memory, record_id, timestamp)

        if decision == "BOOT":
            self.memory.initialized_record_id = record_id
            self.memory.last_shown_record_id = record_id
            self.memory.last_shown_timestamp = timestamp
            logger.info("Display armed; existing latest record %s will not be announced", record_id)
        elif decision == "NEW":
            self.show(record_id, timestamp, identity, now)

        return decision

    def show(
        self,
        record_id: str,
        timestamp: int | None,
        identity: DisplayedIdentity,
        now: float | None = None,
    ) -> None:
        started = self.clock() if now is None else now

        self.memory.expired_record_id = None
        self._cancel_expiry()
        self.memory.last_shown_record_id = record_id
        self.memory.last_shown_timestamp = timestamp

        self.current = identity
        self.pending_expiry = PendingExpiry(record_id=record_id, deadline=started + self.dwell_seconds)
        logger.info("Showing %s (%s) for %.0fs", identity.name, record_id, self.dwell_seconds)
        if self.renderer is not None:
            self.renderer.show(identity)

    def expire_if_due(self, now: float | None = None) -> bool:
        pending = self.pending_expiry
        if pending is None:
            return False
        current_time = self.clock() if now is None else now
        if current_time < pending.deadline:
            return False

        self.pending_expiry = None
        self.memory.expired_record_id = pending.record_id
        self.current = None
        logger.info("Dwell elapsed for %s", pending.record_id)
        if self.renderer is not None:
            self.renderer.clear()
        return True

    def seconds_remaining(self, now: float | None = None) -> float:
        if self.pending_expiry is None:
            return 0.0
        current_time = self.clock() if now is None else now
        return max(0.0, self.pending_expiry.deadline - current_time)

    def reset(self) -> None:
        """Operator reset: back to idle and forget every record seen so far."""
        self._cancel_expiry()
        self.current = None
        self.memory.clear()
        logger.info("Display reset")
        if self.renderer is not None:
            self.renderer.clear()

    def _cancel_expiry(self) -> None:
        self.pending_expiry = None
