import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from backend.security import StaffSession, issue_token, staff_session
from database.db import create_tables, verify_staff_credentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


class StaffLogin(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


def _check_credentials(username: str, password: str) -> dict | None:
    try:
        return verify_staff_credentials(username, password)
    except sqlite3.OperationalError:
        # staff table missing on a database created before startup ran
        create_tables()
        return verify_staff_credentials(username, password)


@router.post("/login")
def login(payload: StaffLogin):
    try:
        staff = _check_credentials(payload.username, payload.password)
    except sqlite3.OperationalError as e:
        logger.error("Staff store unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Sign-in unavailable. Please retry.")

    if not staff:
        logger.info("Rejected sign-in for %r", payload.username.strip())
        raise HTTPException(status_code=401, detail="Invalid staff credentials.")

    token, session = issue_token(staff["username"], staff["role"])
    return {"access_token": token, "token_type": "bearer", **session.to_dict()}


@router.get("/me")
def me(session: StaffSession = Depends(staff_session)):
    return session.to_dict()
