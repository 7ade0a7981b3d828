import json
from typing import Any

from backend.config import QR_PAYLOAD_MAX_LENGTH


class QrPayloadTooLarge(ValueError):
    pass


def build_qr_payload(record: dict[str, Any]) -> str:
    """
    JSON text encoded into an attendee's QR code. Scanning it later resolves
    back to the stored record through attendanceId.
    """
    images = record.get("image") or []
    image = images[0] if images else ""
    # inline data URLs do not fit in a QR code
    if isinstance(image, str) and image.startswith("data:image/"):
        image = "image-provided"

    payload = {
        "attendanceId": record.get("id") or "",
        "firstName": record.get("firstName") or "",
        "lastName": record.get("lastName") or "",
        "phoneNumber": record.get("phoneNumber") or "",
        "image": image,
    }
    text = json.dumps(payload, separators=(",", ":"))
    if len(text) > QR_PAYLOAD_MAX_LENGTH:
        raise QrPayloadTooLarge("Payload too large for QR code generation")
    return text


def attendance_response(record: dict[str, Any]) -> dict[str, Any]:
    return {"attendance": record, "qrPayload": build_qr_payload(record)}
