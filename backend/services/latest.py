from typing import Any, Iterable

from backend.config import LATEST_PAGE_SIZE
from database.db import list_attendance
from display.records import record_recency


def pick_latest(records: Iterable[Any]) -> Any | None:
    """
    Last-write-wins over max(createdAt, updatedAt); missing timestamps count
    as epoch zero. On a tie the first record seen is kept.
    """
    latest = None
    best: int | None = None
    for record in records:
        recency = record_recency(record)
        if best is None or recency > best:
            latest = record
            best = recency
    return latest


def get_latest_attendance(page_size: int = LATEST_PAGE_SIZE) -> dict[str, Any] | None:
    rows, _ = list_attendance(page=1, limit=page_size)
    return pick_latest(rows)
