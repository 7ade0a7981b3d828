import math

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from backend.config import DEFAULT_PAGE_LIMIT
from backend.models import AttendanceCreate, AttendanceUpdate
from backend.security import SCOPE_ATTENDANCE_EDIT, StaffSession, require_scope
from backend.services.latest import get_latest_attendance
from backend.services.qr import QrPayloadTooLarge, attendance_response
from database.db import (
    create_attendance,
    delete_attendance,
    get_attendance,
    list_attendance,
    update_attendance,
)

router = APIRouter()


def respond_with_qr(record: dict) -> dict:
    try:
        return attendance_response(record)
    except QrPayloadTooLarge as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate QR code: {e}")


def _require_record(record_id: str) -> dict:
    record = get_attendance(record_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"Attendance with id {record_id} not found")
    return record


@router.post("/attendance", status_code=201)
def create(payload: AttendanceCreate):
    record = create_attendance(payload.model_dump(exclude_none=True))
    return respond_with_qr(record)


@router.get("/attendance")
def attendance(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, ge=1, le=500),
):
    rows, total = list_attendance(page=page, limit=limit)
    return {
        "data": rows,
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
    }


@router.get("/attendance/latest")
def latest(response: Response):
    response.headers["Cache-Control"] = "no-store"
    record = get_latest_attendance()
    if not record:
        raise HTTPException(status_code=404, detail="No attendance records found")
    return record


@router.get("/attendance/{record_id}/qr")
def attendance_qr(record_id: str):
    return respond_with_qr(_require_record(record_id))


@router.get("/attendance/{record_id}")
def attendance_detail(record_id: str):
    return _require_record(record_id)


@router.patch("/attendance/{record_id}")
def update(record_id: str, payload: AttendanceUpdate, _session: StaffSession = Depends(require_scope(SCOPE_ATTENDANCE_EDIT))):
    record = update_attendance(record_id, payload.model_dump(exclude_unset=True))
    if not record:
        raise HTTPException(status_code=404, detail=f"Attendance with id {record_id} not found")
    return record


@router.delete("/attendance/{record_id}", status_code=204)
def delete(record_id: str, _session: StaffSession = Depends(require_scope(SCOPE_ATTENDANCE_EDIT))):
    if not delete_attendance(record_id):
        raise HTTPException(status_code=404, detail=f"Attendance with id {record_id} not found")
    return Response(status_code=204)
