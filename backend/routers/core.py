from fastapi import APIRouter, Depends, HTTPException

from backend.config import (
    DB_PATH,
    DISPLAY_DWELL_SECONDS,
    DISPLAY_POLL_INTERVAL_SECONDS,
    ENABLE_DEBUG_ENDPOINTS,
    LATEST_PAGE_SIZE,
)
from backend.security import SCOPE_DEBUG, StaffSession, require_scope

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/debug/dbpath")
def dbpath(_session: StaffSession = Depends(require_scope(SCOPE_DEBUG))):
    if not ENABLE_DEBUG_ENDPOINTS:
        raise HTTPException(status_code=404, detail="Not found.")
    return {"db_path": str(DB_PATH)}


@router.get("/config/display")
def display_config():
    return {
        "poll_interval_seconds": DISPLAY_POLL_INTERVAL_SECONDS,
        "dwell_seconds": DISPLAY_DWELL_SECONDS,
        "latest_page_size": LATEST_PAGE_SIZE,
    }
