"""
Scan ingestion: QR text in, new attendance record out.

The QR text is either JSON (a reference via ``attendanceId``/``id`` and/or
inline identity fields) or a bare record id. A referenced record is loaded
and its identity copied into a fresh attendance record, taking each field
from the first source that has it.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from backend.models import AttendanceCreate
from database.db import create_attendance, get_attendance
from display.identity import as_text, lookup

logger = logging.getLogger(__name__)

DEFAULT_AGE = 18
DEFAULT_PHONE = "+1234567890"


class ScanPayloadError(ValueError):
    pass


class RecordNotFound(LookupError):
    pass


@dataclass
class ScanReference:
    parsed: dict[str, Any] | None
    attendance_id: str | None


def _reference_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    return as_text(value)


def parse_qr_data(qr_data: str | None) -> ScanReference:
    text = (qr_data or "").strip()
    if not text:
        raise ScanPayloadError("QR code data is required")

    try:
        parsed = json.loads(text)
    except ValueError:
        return ScanReference(parsed=None, attendance_id=text)

    if not isinstance(parsed, dict):
        return ScanReference(parsed=None, attendance_id=text)

    attendance_id = _reference_text(parsed.get("attendanceId")) or _reference_text(parsed.get("id"))
    return ScanReference(parsed=parsed, attendance_id=attendance_id)


def resolve_source(
    reference: ScanReference,
    load: Callable[[str], dict[str, Any] | None] | None = None,
) -> dict[str, Any]:
    if reference.attendance_id:
        existing = (load or get_attendance)(reference.attendance_id)
        if existing:
            return existing
    if reference.parsed is not None:
        return reference.parsed
    raise RecordNotFound(f"Attendance record {reference.attendance_id} not found")


def _first(*values: Any, default: Any = None) -> Any:
    for value in values:
        text = as_text(value)
        if text:
            return text
    return default


def _first_present(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _image_list(source: dict[str, Any]) -> list[Any]:
    image = lookup(source, ("image",))
    user_image = lookup(source, ("user", "image"))
    if isinstance(image, list):
        return image
    if isinstance(user_image, list):
        return user_image
    single = _first(
        image,
        lookup(source, ("user", "imageUrl")),
        lookup(source, ("imageUrl",)),
        user_image,
    )
    return [single] if single else []


def build_attendance_body(
    source: dict[str, Any],
    reference: ScanReference,
    now: datetime | None = None,
) -> dict[str, Any]:
    parsed = reference.parsed or {}

    def user(field: str) -> Any:
        return lookup(source, ("user", field))

    full_name = as_text(user("name")) or ""
    name_parts = full_name.split()
    first_from_name = name_parts[0] if name_parts else None
    last_from_name = " ".join(name_parts[1:]) or None

    if reference.attendance_id:
        remark = f"Scanned from QR code - Original ID: {reference.attendance_id}"
    else:
        remark = "Scanned from QR code"

    body = {
        "firstName": _first(user("firstName"), source.get("firstName"), parsed.get("firstName"), first_from_name, default="Unknown"),
        "lastName": _first(user("lastName"), source.get("lastName"), parsed.get("lastName"), last_from_name, default="Unknown"),
        "age": _first_present(user("age"), source.get("age"), parsed.get("age"), default=DEFAULT_AGE),
        "phoneNumber": _first(
            user("phoneNumber"),
            source.get("phoneNumber"),
            parsed.get("phoneNumber"),
            user("phone"),
            source.get("phone"),
            default=DEFAULT_PHONE,
        ),
        "image": _image_list(source),
        "city": _first(user("city"), source.get("city"), parsed.get("city"), default="Unknown"),
        "province": _first(user("province"), source.get("province"), parsed.get("province")),
        "companyName": _first(
            user("companyName"),
            source.get("companyName"),
            parsed.get("companyName"),
            user("company"),
            source.get("company"),
            default="Unknown Company",
        ),
        "position": _first(
            user("position"),
            source.get("position"),
            parsed.get("position"),
            user("role"),
            source.get("role"),
            default="Unknown Position",
        ),
        "date": source.get("date") or (now or datetime.now(timezone.utc)),
        "remark": remark,
    }
    if body["province"] is None:
        body.pop("province")
    return body


def ingest_scan(qr_data: str | None) -> dict[str, Any]:
    """
    Persist a new attendance record for one scan.

    Raises ScanPayloadError for empty input, RecordNotFound for an unknown
    bare id, pydantic.ValidationError when the resolved identity is rejected,
    and lets sqlite3 errors through for the caller to report.
    """
    reference = parse_qr_data(qr_data)
    source = resolve_source(reference)
    body = build_attendance_body(source, reference)
    validated = AttendanceCreate.model_validate(body)
    record = create_attendance(validated.model_dump(exclude_none=True))
    logger.info("Recorded scan %s for %s %s", record["id"], record["firstName"], record["lastName"])
    return record
