import logging
import sqlite3

from fastapi import APIRouter, File, HTTPException, UploadFile
from pydantic import ValidationError

from backend.models import ScanRequest
from backend.routers.attendance import respond_with_qr
from backend.services.frames import InvalidImage, decode_qr_from_image
from backend.services.ingest import (
    RecordNotFound,
    ScanPayloadError,
    ingest_scan,
    parse_qr_data,
)
from database.db import get_attendance
from display.identity import extract_identity

logger = logging.getLogger(__name__)

router = APIRouter()


def _validation_messages(error: ValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return messages


def _ingest(qr_data: str | None) -> dict:
    try:
        record = ingest_scan(qr_data)
    except ScanPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RecordNotFound:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    except ValidationError as e:
        messages = _validation_messages(e)
        logger.info("Scan rejected by validation: %s", messages)
        raise HTTPException(
            status_code=400,
            detail="Failed to record attendance. Validation errors: " + "; ".join(messages),
        )
    except sqlite3.OperationalError as e:
        logger.error("Attendance storage unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Attendance storage unavailable. Please retry.")

    return respond_with_qr(record)


@router.post("/scan", status_code=201)
def scan(payload: ScanRequest):
    return _ingest(payload.qrData)


@router.post("/scan/frame", status_code=201)
async def scan_frame(file: UploadFile = File(...)):
    if file.content_type not in ("image/jpeg", "image/png"):
        raise HTTPException(status_code=400, detail="Upload JPG/PNG only.")

    data = await file.read()
    try:
        qr_text = decode_qr_from_image(data)
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not qr_text:
        raise HTTPException(status_code=400, detail="No QR code found in image.")
    return _ingest(qr_text)


@router.get("/user")
def user(qr: str | None = None):
    try:
        reference = parse_qr_data(qr)
    except ScanPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    record = get_attendance(reference.attendance_id) if reference.attendance_id else None
    if not record:
        raise HTTPException(status_code=404, detail="Attendance record not found")
    return extract_identity(record).to_dict()
