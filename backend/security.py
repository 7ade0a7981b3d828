"""
Staff sessions for the attendance desk.

Scanning, the latest-record feed and identity lookup are open to the scanner
phones and the kiosk. Everything that edits or wipes data needs a staff
session: a signed bearer token naming the staff member and their role. Roles
map to fixed scopes, and each protected route asks for one scope through
``require_scope``.

Token layout: ``base64url(claims json) "." hex(hmac-sha256(claims json))``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Header, HTTPException

from backend.config import AUTH_TOKEN_TTL_SECONDS, SIGNING_KEY
from database.db import StaffRole

SCOPE_ATTENDANCE_EDIT = "attendance:edit"
SCOPE_TICKETS_IMPORT = "tickets:import"
SCOPE_DATA_RESET = "data:reset"
SCOPE_DEBUG = "debug:read"

ROLE_SCOPES: dict[str, frozenset[str]] = {
    "admin": frozenset({SCOPE_ATTENDANCE_EDIT, SCOPE_TICKETS_IMPORT, SCOPE_DATA_RESET, SCOPE_DEBUG}),
    # door staff load the ticket list before an event, nothing else
    "operator": frozenset({SCOPE_TICKETS_IMPORT}),
}


@dataclass(frozen=True)
class StaffSession:
    username: str
    role: StaffRole
    issued_at: int
    expires_at: int

    @property
    def scopes(self) -> frozenset[str]:
        return ROLE_SCOPES.get(self.role, frozenset())

    def allows(self, scope: str) -> bool:
        return scope in self.scopes

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "role": self.role,
            "scopes": sorted(self.scopes),
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
        }


def _signature(body: bytes) -> str:
    return hmac.new(SIGNING_KEY.encode("utf-8"), body, hashlib.sha256).hexdigest()


def issue_token(username: str, role: StaffRole, *, now: int | None = None) -> tuple[str, StaffSession]:
    issued_at = int(time.time()) if now is None else now
    session = StaffSession(
        username=username.strip(),
        role=role,
        issued_at=issued_at,
        expires_at=issued_at + AUTH_TOKEN_TTL_SECONDS,
    )
    body = json.dumps(
        {"u": session.username, "r": session.role, "iat": session.issued_at, "exp": session.expires_at},
        separators=(",", ":"),
    ).encode("utf-8")
    token = base64.urlsafe_b64encode(body).decode("ascii") + "." + _signature(body)
    return token, session


def read_token(token: str, *, now: int | None = None) -> StaffSession | None:
    """The session a token carries, or None if it is forged, malformed or expired."""
    encoded, dot, signature = token.rpartition(".")
    if not dot or not encoded:
        return None

    try:
        body = base64.urlsafe_b64decode(encoded.encode("ascii"))
    except ValueError:
        return None
    if not hmac.compare_digest(signature.encode("utf-8"), _signature(body).encode("ascii")):
        return None

    try:
        claims = json.loads(body)
    except ValueError:
        return None
    if not isinstance(claims, dict):
        return None

    username, role = claims.get("u"), claims.get("r")
    issued_at, expires_at = claims.get("iat"), claims.get("exp")
    if not isinstance(username, str) or not username.strip():
        return None
    if role not in ROLE_SCOPES:
        return None
    if not isinstance(issued_at, int) or not isinstance(expires_at, int):
        return None

    current = int(time.time()) if now is None else now
    if expires_at <= current:
        return None
    return StaffSession(username=username, role=role, issued_at=issued_at, expires_at=expires_at)


def staff_session(authorization: str | None = Header(default=None)) -> StaffSession:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing bearer token.")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid authorization scheme.")

    session = read_token(token.strip())
    if session is None:
        raise HTTPException(status_code=401, detail="Invalid or expired session token.")
    return session


def require_scope(scope: str) -> Callable[..., StaffSession]:
    def dependency(session: StaffSession = Depends(staff_session)) -> StaffSession:
        if not session.allows(scope):
            raise HTTPException(
                status_code=403,
                detail=f"Role '{session.role}' is not allowed to {scope}.",
            )
        return session

    return dependency
