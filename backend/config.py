import os
import secrets
from pathlib import Path

from display.config import DWELL_SECONDS, POLL_INTERVAL_SECONDS

BASE_DIR = Path(__file__).resolve().parents[1]

DB_PATH = Path(os.getenv("ROLLCALL_DB_PATH", BASE_DIR / "database" / "rollcall.db"))
ADMIN_USERNAME = os.getenv("ROLLCALL_ADMIN_USERNAME", "admin").strip() or "admin"
ADMIN_PASSWORD = os.getenv("ROLLCALL_ADMIN_PASSWORD", "admin123").strip() or "admin123"
OPERATOR_USERNAME = os.getenv("ROLLCALL_OPERATOR_USERNAME", "").strip()
OPERATOR_PASSWORD = os.getenv("ROLLCALL_OPERATOR_PASSWORD", "").strip()
SIGNING_KEY = os.getenv("ROLLCALL_SIGNING_KEY", "").strip() or secrets.token_urlsafe(32)
AUTH_TOKEN_TTL_SECONDS = int(os.getenv("ROLLCALL_AUTH_TOKEN_TTL_SECONDS", "43200"))
LOG_LEVEL = os.getenv("ROLLCALL_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return fallback


def _parse_csv(value: str | None, fallback: list[str]) -> list[str]:
    if not value:
        return fallback
    parsed = [item.strip() for item in value.split(",") if item.strip()]
    return parsed or fallback


# scanner phones and the display are served from other origins
CORS_ALLOW_ORIGINS = _parse_csv(os.getenv("ROLLCALL_CORS_ALLOW_ORIGINS"), ["*"])
CORS_ALLOW_METHODS = _parse_csv(
    os.getenv("ROLLCALL_CORS_ALLOW_METHODS"),
    ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
CORS_ALLOW_HEADERS = _parse_csv(
    os.getenv("ROLLCALL_CORS_ALLOW_HEADERS"),
    ["Authorization", "Content-Type", "Accept", "Cache-Control"],
)
CORS_ALLOW_CREDENTIALS = _parse_bool(os.getenv("ROLLCALL_CORS_ALLOW_CREDENTIALS"), False)
ENABLE_DEBUG_ENDPOINTS = _parse_bool(os.getenv("ROLLCALL_ENABLE_DEBUG_ENDPOINTS"), False)

# Latest-record resolution reads this many newest rows.
LATEST_PAGE_SIZE = max(1, int(os.getenv("ROLLCALL_LATEST_PAGE_SIZE", "100")))
DEFAULT_PAGE_LIMIT = max(1, int(os.getenv("ROLLCALL_DEFAULT_PAGE_LIMIT", "10")))
QR_PAYLOAD_MAX_LENGTH = 2000

# Parsed once, with the same bounds the display client applies.
DISPLAY_POLL_INTERVAL_SECONDS = POLL_INTERVAL_SECONDS
DISPLAY_DWELL_SECONDS = DWELL_SECONDS
