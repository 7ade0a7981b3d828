from dataclasses import dataclass
from typing import Literal

Decision = Literal["BOOT", "IGNORE", "NEW"]


@dataclass
class SlotMemory:
    """What the display remembers about records it has already handled."""

    last_shown_record_id: str | None = None
    last_shown_timestamp: int | None = None  # epoch ms
    expired_record_id: str | None = None
    initialized_record_id: str | None = None

    def clear(self) -> None:
        self.last_shown_record_id = None
        self.last_shown_timestamp = None
        self.expired_record_id = None
        self.initialized_record_id = None


def detect(memory: SlotMemory, record_id: str, timestamp: int | None) -> Decision:
    """
    Classify one observation of the server's latest record.

    BOOT on the first observation after start/reset, so a record that existed
    before the display opened is never announced. IGNORE for the record just
    shown or just expired, and for responses older than the last shown one.
    Everything else is NEW.
    """
    if memory.initialized_record_id is None:
        return "BOOT"

    if record_id == memory.expired_record_id:
        return "IGNORE"
    if record_id == memory.last_shown_record_id:
        return "IGNORE"

    # late response from an earlier tick
    if (
        timestamp is not None
        and memory.last_shown_timestamp is not None
        and timestamp < memory.last_shown_timestamp
    ):
        return "IGNORE"

    return "NEW"
