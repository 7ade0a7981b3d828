import hashlib
import json
import math
from datetime import datetime, timezone
from typing import Any, Mapping

ID_FIELDS = ("id", "_id", "recordId", "attendanceId")
CREATED_FIELDS = ("createdAt", "created_at")
UPDATED_FIELDS = ("updatedAt", "updated_at")


def parse_timestamp(value: Any) -> int | None:
    """
    Epoch milliseconds for a record timestamp, or None when absent/unreadable.

    Accepts ISO-8601 strings (with or without a trailing Z), numbers already
    in epoch milliseconds, and datetime objects. Naive values are read as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # NaN and Infinity are valid JSON for requests
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def _first_timestamp(record: Mapping[str, Any], fields: tuple[str, ...]) -> int | None:
    for field in fields:
        parsed = parse_timestamp(record.get(field))
        if parsed is not None:
            return parsed
    return None


def record_timestamp(record: Any) -> int | None:
    """max(createdAt, updatedAt) in epoch ms, None when neither is readable."""
    if not isinstance(record, Mapping):
        return None
    candidates = [
        ts
        for ts in (
            _first_timestamp(record, CREATED_FIELDS),
            _first_timestamp(record, UPDATED_FIELDS),
        )
        if ts is not None
    ]
    return max(candidates) if candidates else None


def record_recency(record: Any) -> int:
    # missing timestamps count as epoch zero
    ts = record_timestamp(record)
    return ts if ts is not None else 0


def record_key(record: Any) -> str:
    """
    Identity key used for change detection.

    Server ids win. A record without any id gets a fingerprint of its content,
    which stays the same across polls of that record.
    """
    if isinstance(record, Mapping):
        for field in ID_FIELDS:
            value = record.get(field)
            if isinstance(value, bool) or value is None:
                continue
            if isinstance(value, (str, int)):
                text = str(value).strip()
                if text:
                    return text

    canonical = json.dumps(record, sort_keys=True, default=str, separators=(",", ":"))
    return "sha1:" + hashlib.sha1(canonical.encode("utf-8")).hexdigest()


def unwrap_record(payload: Any) -> dict[str, Any] | None:
    """
    Pull the record object out of the shapes the latest endpoint may return.

    A wrapper whose ``attendance`` is not an object, or whose ``data`` list is
    empty, holds no record.
    """
    if isinstance(payload, list):
        record = payload[0] if payload else None
    elif isinstance(payload, Mapping) and "attendance" in payload:
        record = payload["attendance"]
    elif isinstance(payload, Mapping) and isinstance(payload.get("data"), list):
        record = payload["data"][0] if payload["data"] else None
    else:
        record = payload

    if not isinstance(record, Mapping):
        return None
    return dict(record)
