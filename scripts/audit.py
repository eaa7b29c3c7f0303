"""Audit logging utilities for SOC user lifecycle events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import os
import sys
from pathlib import Path
from typing import Any, Literal

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", "/opt/so/log/so-user"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "user-events.jsonl"
_default_secret_paths: list[Path] = [
    Path("/opt/so/conf/so-user/audit_log_signing_key"),
]
_env_secret_path_str = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
if _env_secret_path_str:
    _default_secret_paths.insert(0, Path(_env_secret_path_str))


def _get_signing_key() -> bytes:
    """Get the audit signing key (environment first, then key files)."""
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")
    for path in _default_secret_paths:
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                continue
    return b""

EventType = Literal["add", "update", "enable", "disable", "delete"]


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any], signing_key: bytes | None = None) -> str:
    """Return the hex HMAC-SHA256 of an event's sorted, compact JSON form."""
    key = _get_signing_key() if signing_key is None else signing_key
    if not key:
        return ""
    payload = json.dumps(event, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hmac.new(key, payload, hashlib.sha256).hexdigest()


def log_user_event(
    event_type: EventType,
    email: str,
    *,
    operator: str = "cli",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a lifecycle event to the audit trail with timestamp and signature.

    Args:
        event_type: Lifecycle operation (add, update, enable, disable, delete)
        email: Email of the user affected by the operation
        operator: Who performed the operation
        details: Additional context (identity id, error, etc.)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "email": email,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    # One JSON object per line
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_user_event(
    event_type: EventType,
    email: str,
    *,
    operator: str = "cli",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a lifecycle event, reporting failures on stderr instead of raising.

    An unwritable audit directory must not turn a completed user change
    into a failed command.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_user_event(
            event_type,
            email,
            operator=operator,
            details=details,
            success=success,
        )
        return True
    except Exception as e:
        print(
            f"[audit] Warning: Failed to log {event_type} event for {email}: {e}",
            file=sys.stderr,
        )
        return False


def find_invalid_events() -> tuple[int, list[tuple[int, str, str]]]:
    """Check every signature in the audit log.

    Returns:
        Tuple of (total_events, failures) where each failure is
        ``(line_number, event_type, email)``. Unparseable lines report
        ``"?"`` for the fields they lack.
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, []

    signing_key = _get_signing_key()
    total = 0
    failures: list[tuple[int, str, str]] = []

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                failures.append((line_number, "?", "?"))
                continue
            if not isinstance(event, dict):
                failures.append((line_number, "?", "?"))
                continue
            stored_sig = event.pop("signature", "")
            computed_sig = _sign_event(event, signing_key)
            if not stored_sig or not computed_sig or not hmac.compare_digest(stored_sig, computed_sig):
                failures.append((line_number, str(event.get("event_type", "?")), str(event.get("email", "?"))))

    return total, failures


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    total, failures = find_invalid_events()
    return total, total - len(failures)


if __name__ == "__main__":
    total, failures = find_invalid_events()
    for line_number, event_type, email in failures:
        print(f"[audit] line {line_number}: {event_type} event for {email} failed signature check", file=sys.stderr)
    print(f"Audit log: {total - len(failures)}/{total} events with valid signatures")
    sys.exit(0 if not failures else 1)
