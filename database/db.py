import hashlib
import hmac
import json
import secrets
import sqlite3
from datetime import datetime, timezone
from typing import Any, Literal

from backend.config import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    DB_PATH,
    OPERATOR_PASSWORD,
    OPERATOR_USERNAME,
)


PASSWORD_HASH_ALGO = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 120_000

# (api field, column)
ATTENDANCE_FIELDS: list[tuple[str, str]] = [
    ("firstName", "first_name"),
    ("lastName", "last_name"),
    ("age", "age"),
    ("phoneNumber", "phone_number"),
    ("image", "image"),
    ("city", "city"),
    ("province", "province"),
    ("companyName", "company_name"),
    ("position", "position"),
    ("date", "date"),
    ("remark", "remark"),
]

TICKET_FIELDS: list[tuple[str, str]] = [
    ("qrCode", "qr_code"),
    ("ticketId", "ticket_id"),
    ("transactionId", "transaction_id"),
    ("eventName", "event_name"),
    ("attendeeName", "attendee_name"),
    ("email", "email"),
    ("eventDate", "event_date"),
    ("branchName", "branch_name"),
    ("customerId", "customer_id"),
    ("customerName", "customer_name"),
    ("ticketCount", "ticket_count"),
    ("totalAmount", "total_amount"),
    ("revenueAmount", "revenue_amount"),
    ("scannedAt", "scanned_at"),
    ("isValid", "is_valid"),
]

TicketScanOutcome = Literal["scanned", "not_found", "already_scanned"]
StaffRole = Literal["admin", "operator"]


def _hash_password(password: str, *, salt: str | None = None) -> str:
    salt_value = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_value.encode("utf-8"),
        PASSWORD_HASH_ITERATIONS,
    ).hex()
    return f"{PASSWORD_HASH_ALGO}${PASSWORD_HASH_ITERATIONS}${salt_value}${digest}"


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, rounds_text, salt_value, expected_digest = password_hash.split("$", 3)
        rounds = int(rounds_text)
    except (ValueError, TypeError):
        return False

    if algo != PASSWORD_HASH_ALGO or rounds <= 0:
        return False

    candidate_digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_value.encode("utf-8"),
        rounds,
    ).hex()
    return hmac.compare_digest(candidate_digest, expected_digest)


def iso_timestamp(moment: datetime | None = None) -> str:
    """UTC, millisecond precision, trailing Z."""
    value = moment or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def new_record_id() -> str:
    return secrets.token_hex(12)


def connect_db():
    conn = sqlite3.connect(str(DB_PATH), check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _seed_staff_user(cursor: sqlite3.Cursor, username: str, password: str, role: StaffRole) -> None:
    username = (username or "").strip()
    password = (password or "").strip()
    if not username or not password:
        return

    cursor.execute(
        "SELECT id FROM staff_users WHERE username = ? COLLATE NOCASE",
        (username,),
    )
    if cursor.fetchone():
        return

    cursor.execute(
        "INSERT INTO staff_users (username, password_hash, role) VALUES (?, ?, ?)",
        (username, _hash_password(password), role),
    )


def create_tables():
    conn = connect_db()
    cursor = conn.cursor()

    cursor.execute("""
    CREATE TABLE IF NOT EXISTS attendance (
        id TEXT PRIMARY KEY,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        age INTEGER NOT NULL,
        phone_number TEXT NOT NULL,
        image TEXT NOT NULL,             -- JSON list of URLs
        city TEXT NOT NULL,
        province TEXT,
        company_name TEXT NOT NULL,
        position TEXT NOT NULL,
        date TEXT,
        remark TEXT,
        created_at TEXT NOT NULL,        -- ISO-8601 UTC
        updated_at TEXT NOT NULL
    )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_attendance_created_at ON attendance (created_at DESC)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_attendance_phone ON attendance (phone_number)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_attendance_company ON attendance (company_name)")

    cursor.execute("""
    CREATE TABLE IF NOT EXISTS tickets (
        id TEXT PRIMARY KEY,
        qr_code TEXT NOT NULL,
        ticket_id TEXT,
        transaction_id TEXT NOT NULL UNIQUE,
        event_name TEXT,
        attendee_name TEXT,
        email TEXT,
        event_date TEXT,
        branch_name TEXT,
        customer_id TEXT,
        customer_name TEXT,
        ticket_count REAL,
        total_amount REAL,
        revenue_amount REAL,
        scanned_at TEXT,
        is_valid INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_tickets_qr_code ON tickets (qr_code)")

    cursor.execute("""
    CREATE TABLE IF NOT EXISTS staff_users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE COLLATE NOCASE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('admin', 'operator')),
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """)

    _seed_staff_user(cursor, ADMIN_USERNAME, ADMIN_PASSWORD, "admin")
    _seed_staff_user(cursor, OPERATOR_USERNAME, OPERATOR_PASSWORD, "operator")

    conn.commit()
    conn.close()


# -----------------------------
# Staff accounts
# -----------------------------
def create_staff_user(username: str, password: str, *, role: StaffRole = "operator") -> None:
    conn = connect_db()
    cur = conn.cursor()
    _seed_staff_user(cur, username, password, role)
    conn.commit()
    conn.close()


def verify_staff_credentials(username: str, password: str) -> dict | None:
    clean_username = username.strip()
    clean_password = password.strip()
    if not clean_username or not clean_password:
        return None

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, username, password_hash, role
        FROM staff_users
        WHERE username = ? COLLATE NOCASE
        """,
        (clean_username,),
    )
    row = cur.fetchone()
    conn.close()

    if not row:
        return None

    staff_id, saved_username, password_hash, role = row
    if not _verify_password(clean_password, password_hash):
        return None

    return {"id": staff_id, "username": saved_username, "role": role}


# -----------------------------
# Attendance
# -----------------------------
_ATTENDANCE_SELECT = (
    "SELECT id, "
    + ", ".join(column for _, column in ATTENDANCE_FIELDS)
    + ", created_at, updated_at FROM attendance"
)


def _storage_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return iso_timestamp(value)
    return value


def _row_to_attendance(row) -> dict[str, Any]:
    record_id = row[0]
    out: dict[str, Any] = {"id": record_id, "_id": record_id}
    for idx, (field, _) in enumerate(ATTENDANCE_FIELDS, start=1):
        out[field] = row[idx]
    try:
        out["image"] = json.loads(out["image"] or "[]")
    except ValueError:
        out["image"] = []
    out["createdAt"] = row[len(ATTENDANCE_FIELDS) + 1]
    out["updatedAt"] = row[len(ATTENDANCE_FIELDS) + 2]
    return out


def create_attendance(
    data: dict[str, Any],
    *,
    created_at: str | None = None,
    updated_at: str | None = None,
) -> dict[str, Any]:
    record_id = new_record_id()
    created = created_at or iso_timestamp()
    updated = updated_at or created

    values = []
    for field, _ in ATTENDANCE_FIELDS:
        value = _storage_value(data.get(field))
        if field == "image":
            value = json.dumps(list(value or []))
        values.append(value)

    columns = ", ".join(column for _, column in ATTENDANCE_FIELDS)
    placeholders = ", ".join("?" for _ in range(len(ATTENDANCE_FIELDS) + 3))

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(
        f"""
        INSERT INTO attendance (id, {columns}, created_at, updated_at)
        VALUES ({placeholders})
        """,
        (record_id, *values, created, updated),
    )
    conn.commit()
    conn.close()
    return get_attendance(record_id)


def get_attendance(record_id: str) -> dict[str, Any] | None:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"{_ATTENDANCE_SELECT} WHERE id = ?", (record_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_attendance(row) if row else None


def list_attendance(page: int = 1, limit: int = 10) -> tuple[list[dict[str, Any]], int]:
    """Newest first by createdAt, with the total row count."""
    safe_limit = max(1, int(limit))
    safe_offset = max(0, int(page) - 1) * safe_limit

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(
        f"""
        {_ATTENDANCE_SELECT}
        ORDER BY created_at DESC, rowid DESC
        LIMIT ?
        OFFSET ?
        """,
        (safe_limit, safe_offset),
    )
    rows = cur.fetchall()
    cur.execute("SELECT COUNT(1) FROM attendance")
    total_row = cur.fetchone()
    conn.close()

    total = int(total_row[0] or 0) if total_row else 0
    return [_row_to_attendance(r) for r in rows], total


def update_attendance(record_id: str, changes: dict[str, Any]) -> dict[str, Any] | None:
    columns = dict(ATTENDANCE_FIELDS)
    assignments = []
    params: list[Any] = []
    for field, value in changes.items():
        if field not in columns:
            continue
        stored = _storage_value(value)
        if field == "image":
            stored = json.dumps(list(value or []))
        assignments.append(f"{columns[field]} = ?")
        params.append(stored)

    assignments.append("updated_at = ?")
    params.append(iso_timestamp())
    params.append(record_id)

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(
        f"UPDATE attendance SET {', '.join(assignments)} WHERE id = ?",
        params,
    )
    updated = cur.rowcount
    conn.commit()
    conn.close()

    if not updated:
        return None
    return get_attendance(record_id)


def delete_attendance(record_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM attendance WHERE id = ?", (record_id,))
    deleted = cur.rowcount
    conn.commit()
    conn.close()
    return deleted > 0


# -----------------------------
# Tickets
# -----------------------------
_TICKET_SELECT = (
    "SELECT id, "
    + ", ".join(column for _, column in TICKET_FIELDS)
    + ", created_at, updated_at FROM tickets"
)


def _row_to_ticket(row) -> dict[str, Any]:
    ticket_id = row[0]
    out: dict[str, Any] = {"id": ticket_id, "_id": ticket_id}
    for idx, (field, _) in enumerate(TICKET_FIELDS, start=1):
        out[field] = row[idx]
    out["isValid"] = bool(out["isValid"])
    out["createdAt"] = row[len(TICKET_FIELDS) + 1]
    out["updatedAt"] = row[len(TICKET_FIELDS) + 2]
    return out


def import_tickets(tickets: list[dict[str, Any]]) -> dict[str, int]:
    """
    Insert each ticket unless its transactionId already exists.
    Existing tickets are left untouched.
    """
    columns = dict(TICKET_FIELDS)
    now = iso_timestamp()
    inserted = 0

    conn = connect_db()
    cur = conn.cursor()
    for ticket in tickets:
        data = {field: value for field, value in ticket.items() if field in columns and value is not None}
        data.setdefault("isValid", True)
        data["isValid"] = 1 if data["isValid"] else 0

        names = ["id", *(columns[f] for f in data), "created_at", "updated_at"]
        values = [new_record_id(), *data.values(), now, now]
        cur.execute(
            f"""
            INSERT OR IGNORE INTO tickets ({", ".join(names)})
            VALUES ({", ".join("?" for _ in names)})
            """,
            values,
        )
        inserted += cur.rowcount
    conn.commit()
    conn.close()

    return {
        "inserted": inserted,
        "matched": len(tickets) - inserted,
        "modified": 0,
        "total": len(tickets),
    }


def scan_ticket(qr_code: str) -> tuple[TicketScanOutcome, dict[str, Any] | None]:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(
        f"{_TICKET_SELECT} WHERE qr_code = ? OR transaction_id = ? LIMIT 1",
        (qr_code, qr_code),
    )
    row = cur.fetchone()
    if not row:
        conn.close()
        return "not_found", None

    ticket = _row_to_ticket(row)
    if ticket["scannedAt"]:
        conn.close()
        return "already_scanned", ticket

    now = iso_timestamp()
    cur.execute(
        "UPDATE tickets SET scanned_at = ?, is_valid = 1, updated_at = ? WHERE id = ?",
        (now, now, ticket["id"]),
    )
    conn.commit()
    conn.close()
    return "scanned", get_ticket(ticket["id"])


def get_all_tickets() -> list[dict[str, Any]]:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"{_TICKET_SELECT} ORDER BY scanned_at DESC, rowid DESC")
    rows = cur.fetchall()
    conn.close()
    return [_row_to_ticket(r) for r in rows]


def get_ticket(ticket_id: str) -> dict[str, Any] | None:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"{_TICKET_SELECT} WHERE id = ?", (ticket_id,))
    row = cur.fetchone()
    conn.close()
    return _row_to_ticket(row) if row else None


# -----------------------------
# Resets
# -----------------------------
def clear_attendance() -> int:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM attendance;")
    deleted = cur.rowcount
    conn.commit()
    conn.close()
    return deleted


def clear_all_tables():
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM attendance;")
    cur.execute("DELETE FROM tickets;")
    conn.commit()
    conn.close()
