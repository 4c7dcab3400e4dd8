"""
Audit Trail — signed record of Tenable VM user changes

Every mutation made through the CLI (or a host integration holding a
UserReconciler) is appended to a JSON Lines file as one AuditRecord. A
record names the target user, the operator and the outcome, and carries the
exact field values that moved rather than free-form text:

    create   -> permissions / account_type / enabled as created
    update   -> UserChanges.changed_fields() with their new values
    enable / disable / delete -> the id only
    partial  -> requested vs. actual enabled state of a half-applied create

Records are signed with HMAC-SHA256 when a signing key is available
(/run/secrets/audit_log_signing_key or AUDIT_LOG_SIGNING_KEY). An empty key
writes unsigned records; verify() reports them separately.
"""
from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from tenablevm.config.settings import _load_secret_from_file
from tenablevm.core.tenable import PartialCreateError, User
from tenablevm.core.user_resource import UserChanges

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_DIR = Path(".runtime/audit")
AUDIT_FILE_NAME = "user-events.jsonl"

OUTCOME_OK = "ok"
OUTCOME_FAILED = "failed"
OUTCOME_PARTIAL = "partial"


def _utc_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@dataclass
class AuditRecord:
    """One user change as written to the audit file."""
    action: str
    operator: str
    user_id: Optional[str] = None
    username: Optional[str] = None
    outcome: str = OUTCOME_OK
    changes: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    recorded_at: str = field(default_factory=_utc_now)


# ─────────────────────────────────────────────────────────────────────────────
# Record builders
# ─────────────────────────────────────────────────────────────────────────────

def created(user: User, operator: str) -> AuditRecord:
    return AuditRecord(
        action="create",
        operator=operator,
        user_id=str(user.id),
        username=user.username,
        changes={
            "permissions": user.permissions,
            "account_type": user.account_type,
            "enabled": user.enabled,
        },
    )


def partially_created(error: PartialCreateError, operator: str) -> AuditRecord:
    """The user exists but its enabled flag is not what was asked for."""
    return AuditRecord(
        action="create",
        operator=operator,
        user_id=str(error.user.id),
        username=error.user.username,
        outcome=OUTCOME_PARTIAL,
        changes={
            "permissions": error.user.permissions,
            "account_type": error.user.account_type,
            "enabled": {"requested": error.requested_enabled, "actual": error.user.enabled},
        },
        error=str(error.cause),
    )


def updated(user: User, changes: UserChanges, operator: str) -> AuditRecord:
    return AuditRecord(
        action="update",
        operator=operator,
        user_id=str(user.id),
        username=user.username,
        changes={name: getattr(changes, name) for name in changes.changed_fields()},
    )


def toggled(user_id: Union[int, str], enabled: bool, operator: str) -> AuditRecord:
    return AuditRecord(
        action="enable" if enabled else "disable",
        operator=operator,
        user_id=str(user_id),
        changes={"enabled": enabled},
    )


def deleted(user_id: Union[int, str], operator: str) -> AuditRecord:
    return AuditRecord(action="delete", operator=operator, user_id=str(user_id))


def failed(
    action: str,
    operator: str,
    error: Exception,
    user_id: Optional[Union[int, str]] = None,
    username: Optional[str] = None,
    changes: Optional[UserChanges] = None,
) -> AuditRecord:
    """A mutation the API rejected. ``changes`` is what was attempted."""
    attempted = {}
    if changes is not None:
        attempted = {name: getattr(changes, name) for name in changes.changed_fields()}
    return AuditRecord(
        action=action,
        operator=operator,
        user_id=str(user_id) if user_id is not None else None,
        username=username,
        outcome=OUTCOME_FAILED,
        changes=attempted,
        error=str(error),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Trail
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class VerifyReport:
    """Signature check over the whole audit file."""
    total: int = 0
    valid: int = 0
    unsigned: int = 0
    bad_lines: List[int] = field(default_factory=list)

    @property
    def intact(self) -> bool:
        return self.total == self.valid


def _canonical(entry: Dict[str, Any]) -> bytes:
    return json.dumps(entry, sort_keys=True, separators=(",", ":")).encode("utf-8")


class AuditTrail:
    """Append-only, optionally signed JSONL file of AuditRecords.

    The directory is kept at 0700 and the file at 0600.

    Usage:
        trail = AuditTrail()
        trail.write(created(user, operator="alice"))
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None, signing_key: Optional[str] = None):
        if directory is None:
            directory = os.environ.get("AUDIT_LOG_DIR") or DEFAULT_AUDIT_DIR
        self.directory = Path(directory)
        self.path = self.directory / AUDIT_FILE_NAME
        if signing_key is None:
            signing_key = _load_secret_from_file("audit_log_signing_key", "AUDIT_LOG_SIGNING_KEY") or ""
        self._key = signing_key.strip().encode("utf-8")

    def __repr__(self) -> str:
        return f"AuditTrail(path={str(self.path)!r}, signed={self.signed})"

    @property
    def signed(self) -> bool:
        return bool(self._key)

    def _sign(self, entry: Dict[str, Any]) -> str:
        return hmac.new(self._key, _canonical(entry), hashlib.sha256).hexdigest()

    def append(self, record: AuditRecord) -> None:
        """Write one record. Raises OSError if the file cannot be written."""
        self.directory.mkdir(parents=True, exist_ok=True)
        self.directory.chmod(0o700)

        entry = asdict(record)
        if self.signed:
            entry["signature"] = self._sign(entry)

        fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
        with os.fdopen(fd, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def write(self, record: AuditRecord) -> bool:
        """Like append(), but a failed write is logged instead of raised.

        Returns:
            True if the record reached the file
        """
        try:
            self.append(record)
        except OSError as e:
            logger.warning(
                "Could not write audit record action=%s user_id=%s to %s: %s",
                record.action, record.user_id, self.path, e,
            )
            return False
        return True

    def verify(self) -> VerifyReport:
        """Recompute every signature with the current key.

        Malformed lines and signature mismatches are reported by line number.
        """
        report = VerifyReport()
        if not self.path.exists():
            return report

        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                report.total += 1
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    report.bad_lines.append(lineno)
                    continue
                stored = entry.pop("signature", "")
                if not stored:
                    report.unsigned += 1
                    continue
                if self.signed and hmac.compare_digest(stored, self._sign(entry)):
                    report.valid += 1
                else:
                    report.bad_lines.append(lineno)
        return report
