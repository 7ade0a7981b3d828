import math
import os

# Lower bounds shared with the server's /config/display report.
MIN_POLL_INTERVAL_SECONDS = 0.05
MIN_DWELL_SECONDS = 1.0


def parse_seconds(value: str | None, fallback: float, *, minimum: float = 0.0) -> float:
    if value is None or not value.strip():
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    if not math.isfinite(parsed):
        return fallback
    return max(minimum, parsed)


SERVER_URL = (os.getenv("ROLLCALL_SERVER_URL", "http://localhost:8000").strip() or "http://localhost:8000").rstrip("/")
POLL_INTERVAL_SECONDS = parse_seconds(
    os.getenv("ROLLCALL_DISPLAY_POLL_INTERVAL_SECONDS"),
    0.3,
    minimum=MIN_POLL_INTERVAL_SECONDS,
)
DWELL_SECONDS = parse_seconds(
    os.getenv("ROLLCALL_DISPLAY_DWELL_SECONDS"),
    20.0,
    minimum=MIN_DWELL_SECONDS,
)
REQUEST_TIMEOUT_SECONDS = parse_seconds(
    os.getenv("ROLLCALL_DISPLAY_REQUEST_TIMEOUT_SECONDS"),
    2.0,
    minimum=0.1,
)
PORTRAIT_TIMEOUT_SECONDS = parse_seconds(
    os.getenv("ROLLCALL_DISPLAY_PORTRAIT_TIMEOUT_SECONDS"),
    5.0,
    minimum=0.1,
)
LOG_LEVEL = os.getenv("ROLLCALL_LOG_LEVEL", "INFO").strip().upper() or "INFO"

WAITING_MESSAGE = "Waiting for QR scan..."
