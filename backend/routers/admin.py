from fastapi import APIRouter, Depends

from backend.security import SCOPE_DATA_RESET, require_scope
from database.db import clear_all_tables, clear_attendance

router = APIRouter(dependencies=[Depends(require_scope(SCOPE_DATA_RESET))])


@router.post("/admin/reset/attendance")
def reset_attendance():
    deleted = clear_attendance()
    return {"ok": True, "deleted": deleted, "message": "Attendance records cleared"}


@router.post("/admin/reset/hard")
def reset_hard():
    clear_all_tables()
    return {"ok": True, "message": "Reset complete: attendance + tickets cleared"}
