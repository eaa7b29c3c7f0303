"""Direct access to the Kratos credential database.

The admin API does not accept pre-hashed passwords or lock credentials, so
password hashes and sessions are managed in the SQLite store itself.

A password credential's ``config`` blob holds exactly one of two keys:
``hashed_password`` while the identity is active, ``locked_password`` while it
is locked. Renaming the key is what prevents password login for a locked
identity; the hash itself is kept so enabling restores the old password.
"""
from __future__ import annotations
import json
import sqlite3
import sys
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .exceptions import CredentialStoreError

HASHED_KEY = "hashed_password"
LOCKED_KEY = "locked_password"


@dataclass(frozen=True)
class HashedCredential:
    """Password credential usable for login."""
    hash: str

    key = HASHED_KEY

    def locked(self) -> "LockedCredential":
        return LockedCredential(self.hash)

    def unlocked(self) -> "HashedCredential":
        return self


@dataclass(frozen=True)
class LockedCredential:
    """Password credential of a locked identity."""
    hash: str

    key = LOCKED_KEY

    def locked(self) -> "LockedCredential":
        return self

    def unlocked(self) -> HashedCredential:
        return HashedCredential(self.hash)


Credential = Union[HashedCredential, LockedCredential]


def parse_credential_config(config: dict) -> Credential:
    """Build the credential held by a ``config`` object.

    Raises:
        CredentialStoreError: If both or neither password keys are present
    """
    has_hashed = HASHED_KEY in config
    has_locked = LOCKED_KEY in config
    if has_hashed == has_locked:
        raise CredentialStoreError(
            f"Credential config must hold exactly one of '{HASHED_KEY}' or '{LOCKED_KEY}'"
        )
    if has_hashed:
        return HashedCredential(config[HASHED_KEY])
    return LockedCredential(config[LOCKED_KEY])


def apply_credential(config: dict, credential: Credential) -> dict:
    """Return a copy of ``config`` holding ``credential`` as its only password key."""
    updated = {k: v for k, v in config.items() if k not in (HASHED_KEY, LOCKED_KEY)}
    updated[credential.key] = credential.hash
    return updated


class CredentialStore:
    """Reads and rewrites credential records and sessions in the Kratos database."""

    def __init__(self, database_path: Union[str, Path]):
        """Initialize the store.

        Args:
            database_path: Path to the Kratos SQLite database file
        """
        self.database_path = Path(database_path)

    def _connect(self) -> sqlite3.Connection:
        if not self.database_path.is_file():
            raise CredentialStoreError(f"Database file not found: {self.database_path}")
        return sqlite3.connect(str(self.database_path))

    def _read_config(self, conn: sqlite3.Connection, identity_id: str) -> dict:
        row = conn.execute(
            "SELECT config FROM identity_credentials WHERE identity_id = ?",
            (identity_id,),
        ).fetchone()
        if row is None:
            raise CredentialStoreError(f"No credential record for identity {identity_id}")
        raw = row[0]
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        if not raw:
            return {}
        try:
            config = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CredentialStoreError(f"Malformed credential config for identity {identity_id}: {exc}") from exc
        if not isinstance(config, dict):
            raise CredentialStoreError(f"Malformed credential config for identity {identity_id}")
        return config

    def _write_config(self, conn: sqlite3.Connection, identity_id: str, config: dict) -> None:
        blob = json.dumps(config, separators=(",", ":")).encode("utf-8")
        conn.execute(
            "UPDATE identity_credentials SET config = ? WHERE identity_id = ?",
            (blob, identity_id),
        )

    def get_credential(self, identity_id: str) -> Credential:
        """Return the password credential currently stored for an identity.

        Raises:
            CredentialStoreError: If the record is missing or malformed
        """
        try:
            with closing(self._connect()) as conn:
                return parse_credential_config(self._read_config(conn, identity_id))
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"Unable to read credentials: {exc}") from exc

    def set_password_hash(self, identity_id: str, password_hash: str) -> None:
        """Replace the stored hash, keeping the record's locked/unlocked form.

        A record with no password key yet receives an active credential.

        Raises:
            CredentialStoreError: If the identity has no credential record
        """
        try:
            with closing(self._connect()) as conn, conn:
                config = self._read_config(conn, identity_id)
                if LOCKED_KEY in config and HASHED_KEY not in config:
                    credential: Credential = LockedCredential(password_hash)
                else:
                    credential = HashedCredential(password_hash)
                self._write_config(conn, identity_id, apply_credential(config, credential))
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"Unable to update password: {exc}") from exc
        print(f"[credentials] Password hash updated for identity {identity_id}", file=sys.stderr)

    def lock(self, identity_id: str) -> None:
        """Rewrite the credential into its locked form."""
        self._transition(identity_id, locked=True)

    def unlock(self, identity_id: str) -> None:
        """Rewrite the credential into its active form."""
        self._transition(identity_id, locked=False)

    def _transition(self, identity_id: str, locked: bool) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                config = self._read_config(conn, identity_id)
                current = parse_credential_config(config)
                target = current.locked() if locked else current.unlocked()
                if target == current:
                    return
                self._write_config(conn, identity_id, apply_credential(config, target))
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"Unable to update credential state: {exc}") from exc
        print(f"[credentials] Credential for identity {identity_id} now '{target.key}'", file=sys.stderr)

    def delete_sessions(self, identity_id: str) -> int:
        """Delete every session of an identity.

        Returns:
            Number of sessions deleted
        """
        try:
            with closing(self._connect()) as conn, conn:
                cursor = conn.execute("DELETE FROM sessions WHERE identity_id = ?", (identity_id,))
                deleted = cursor.rowcount
        except sqlite3.Error as exc:
            raise CredentialStoreError(f"Unable to delete sessions: {exc}") from exc
        if deleted:
            print(f"[credentials] Deleted {deleted} session(s) for identity {identity_id}", file=sys.stderr)
        return deleted
