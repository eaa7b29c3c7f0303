"""Pytest shared fixtures: a fake identity service and a scratch credential database."""
import json
import pathlib
import sqlite3
import sys
import uuid
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from scripts import audit

KRATOS_URL = "http://kratos.test:4434"


class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code: int = 200, url: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = "" if payload is None else json.dumps(payload)
        self.content = self.text.encode("utf-8")

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class HtmlResponse(StubResponse):
    """A proxy or load balancer page served in place of JSON."""

    def __init__(self, status_code: int = 200, url: str = ""):
        super().__init__(None, status_code, url)
        self.text = "<html><body>Bad Gateway</body></html>"
        self.content = self.text.encode("utf-8")


def create_database(path: pathlib.Path) -> pathlib.Path:
    """Create the subset of the Kratos schema that the tool touches."""
    conn = sqlite3.connect(str(path))
    with conn:
        conn.execute("CREATE TABLE identity_credentials (identity_id TEXT PRIMARY KEY, config BLOB)")
        conn.execute("CREATE TABLE sessions (id TEXT PRIMARY KEY, identity_id TEXT)")
    conn.close()
    return path


def read_config(path: pathlib.Path, identity_id: str) -> Optional[dict]:
    conn = sqlite3.connect(str(path))
    row = conn.execute(
        "SELECT config FROM identity_credentials WHERE identity_id = ?", (identity_id,)
    ).fetchone()
    conn.close()
    if row is None:
        return None
    raw = row[0]
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return json.loads(raw) if raw else {}


def count_sessions(path: pathlib.Path, identity_id: str) -> int:
    conn = sqlite3.connect(str(path))
    (count,) = conn.execute("SELECT COUNT(*) FROM sessions WHERE identity_id = ?", (identity_id,)).fetchone()
    conn.close()
    return count


class FakeKratos:
    """In-memory identity service wired in place of requests' HTTP verbs.

    Identities created through POST also get an empty credential record in
    the scratch database, as the real service does for password identities.
    """

    def __init__(self, db_path: pathlib.Path, base_url: str = KRATOS_URL):
        self.db_path = db_path
        self.base_url = base_url
        self.identities: dict = {}
        self.calls: list = []
        self.reachable = True

    def seed(self, email: str, config: Optional[dict] = None, status: str = "active", sessions: int = 0) -> str:
        identity_id = str(uuid.uuid4())
        self.identities[identity_id] = self._representation(identity_id, email, status)
        conn = sqlite3.connect(str(self.db_path))
        with conn:
            blob = json.dumps(config if config is not None else {"hashed_password": "$argon2id$seed"})
            conn.execute(
                "INSERT INTO identity_credentials (identity_id, config) VALUES (?, ?)",
                (identity_id, blob.encode("utf-8")),
            )
            for _ in range(sessions):
                conn.execute("INSERT INTO sessions (id, identity_id) VALUES (?, ?)", (str(uuid.uuid4()), identity_id))
        conn.close()
        return identity_id

    def _representation(self, identity_id: str, email: str, status: str) -> dict:
        return {
            "id": identity_id,
            "schema_id": "default",
            "schema_url": f"{self.base_url}/schemas/default",
            "traits": {"email": email, "status": status},
            "verifiable_addresses": [{"value": email, "verified": False, "via": "email"}],
            "recovery_addresses": [{"value": email, "via": "email"}],
        }

    def methods(self, method: str) -> list:
        return [call for call in self.calls if call[0] == method]

    def _path(self, url: str) -> str:
        if not self.reachable:
            raise requests.ConnectionError(f"Connection refused: {url}")
        assert url.startswith(self.base_url), f"Unexpected HTTP call in unit test: {url}"
        return url[len(self.base_url):]

    @staticmethod
    def _error(code: int, message: str, url: str) -> StubResponse:
        return StubResponse({"error": {"code": code, "message": message}}, status_code=code, url=url)

    def get(self, url, params=None, **kwargs):
        path = self._path(url)
        self.calls.append(("GET", path, None))
        if path == "/":
            return StubResponse({"error": {"code": 404, "message": "404 page not found"}}, 404, url)
        if path == "/identities":
            return StubResponse(list(self.identities.values()), url=url)
        identity_id = path.rsplit("/", 1)[-1]
        if identity_id in self.identities:
            return StubResponse(json.loads(json.dumps(self.identities[identity_id])), url=url)
        return self._error(404, "Unable to locate the resource", url)

    def post(self, url, json=None, **kwargs):
        path = self._path(url)
        self.calls.append(("POST", path, json))
        email = json["traits"]["email"]
        if any(identity["traits"]["email"] == email for identity in self.identities.values()):
            return self._error(409, "A resource with that value exists already", url)
        identity_id = self.seed(email, config={})
        return StubResponse(self.identities[identity_id], status_code=201, url=url)

    def put(self, url, json=None, **kwargs):
        path = self._path(url)
        self.calls.append(("PUT", path, json))
        identity_id = path.rsplit("/", 1)[-1]
        if identity_id not in self.identities:
            return self._error(404, "Unable to locate the resource", url)
        self.identities[identity_id]["traits"] = json["traits"]
        return StubResponse(self.identities[identity_id], url=url)

    def delete(self, url, **kwargs):
        path = self._path(url)
        self.calls.append(("DELETE", path, None))
        identity_id = path.rsplit("/", 1)[-1]
        if self.identities.pop(identity_id, None) is None:
            return self._error(404, "Unable to locate the resource", url)
        return StubResponse(None, status_code=204, url=url)


# ─────────────────────────────────────────────────────────────────────────────
# Environment isolation
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from host configuration, integrations and audit logs."""
    for var in (
        "KRATOS_URL",
        "DATABASE_PATH",
        "ARGON2_ITERATIONS",
        "ARGON2_PARALLELISM",
        "ARGON2_HASH_LENGTH",
        "SO_USER_REQUIRED_TOOLS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("SO_USER_NOTIFIERS", "none")
    # Small memory cost keeps hashing fast
    monkeypatch.setenv("ARGON2_MEMORY", "8")

    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "user-events.jsonl")
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key")


@pytest.fixture()
def db_path(tmp_path):
    return create_database(tmp_path / "db.sqlite")


@pytest.fixture()
def kratos(monkeypatch, db_path):
    """Fake identity service with requests' verbs patched to reach it."""
    fake = FakeKratos(db_path)
    monkeypatch.setattr(requests, "get", fake.get)
    monkeypatch.setattr(requests, "post", fake.post)
    monkeypatch.setattr(requests, "put", fake.put)
    monkeypatch.setattr(requests, "delete", fake.delete)
    return fake
