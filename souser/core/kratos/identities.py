"""Identity lifecycle operations against the Kratos admin API."""
from __future__ import annotations
import sys
from typing import Optional, List

from .client import KratosClient
from .exceptions import (
    IdentityAlreadyExistsError,
    IdentityNotFoundError,
    KratosAPIError,
)

SCHEMA_ID = "default"
STATUS_ACTIVE = "active"
STATUS_LOCKED = "locked"

# Fields owned by the service; PUT rejects or ignores them.
SERVER_MANAGED_FIELDS = (
    "id",
    "schema_url",
    "verifiable_addresses",
    "recovery_addresses",
    "credentials",
    "created_at",
    "updated_at",
)


def identity_email(identity: dict) -> Optional[str]:
    """Return the email of an identity representation.

    The first verifiable address is authoritative; ``traits.email`` is used
    when the service has not recorded any address.
    """
    addresses = identity.get("verifiable_addresses")
    if isinstance(addresses, list) and addresses and isinstance(addresses[0], dict) and addresses[0].get("value"):
        return addresses[0]["value"]
    traits = identity.get("traits")
    return traits.get("email") if isinstance(traits, dict) else None


class IdentityService:
    """Service for managing identities."""

    def __init__(self, client: KratosClient):
        """Initialize identity service.

        Args:
            client: Kratos admin client
        """
        self.client = client

    def list_identities(self) -> List[dict]:
        """Return every identity known to the service."""
        resp = self.client.get("/identities")
        identities = self.client.json_body(resp)
        if identities is None:
            return []
        if not isinstance(identities, list) or not all(isinstance(i, dict) for i in identities):
            raise KratosAPIError(resp.status_code, "Malformed response from identity service", resp.url)
        return identities

    def list_emails(self) -> List[str]:
        """Return the email of every identity, sorted."""
        emails = (identity_email(identity) for identity in self.list_identities())
        return sorted(email for email in emails if email)

    def find_identity_id(self, email: str) -> str:
        """Return the id of the identity registered with ``email``.

        This scans the full identity collection; the admin API exposes no
        lookup by trait.

        Raises:
            IdentityNotFoundError: If no identity has this email
        """
        for identity in self.list_identities():
            if identity_email(identity) != email:
                continue
            identity_id = identity.get("id")
            if not isinstance(identity_id, str) or not identity_id:
                raise KratosAPIError(0, f"Identity service returned no id for '{email}'", "/identities")
            return identity_id
        raise IdentityNotFoundError()

    def create_identity(self, email: str) -> str:
        """Create an active identity for ``email`` and return its id.

        Raises:
            IdentityAlreadyExistsError: If the service reports a conflict (409)
            KratosAPIError: For any other service-reported error
        """
        payload = {
            "schema_id": SCHEMA_ID,
            "traits": {"email": email, "status": STATUS_ACTIVE},
        }
        try:
            resp = self.client.post("/identities", json=payload)
        except KratosAPIError as exc:
            if exc.status_code == 409:
                raise IdentityAlreadyExistsError() from exc
            raise
        body = self.client.json_body(resp)
        identity_id = body.get("id") if isinstance(body, dict) else None
        if not isinstance(identity_id, str) or not identity_id:
            raise KratosAPIError(resp.status_code, "Identity service returned no identity id", resp.url)
        print(f"[identities] Identity created for '{email}' (id={identity_id})", file=sys.stderr)
        return identity_id

    def set_status(self, identity_id: str, status: str) -> None:
        """Set ``traits.status`` on an identity.

        The current representation is fetched, stripped of server-managed
        fields, and written back whole.
        """
        path = f"/identities/{identity_id}"
        resp = self.client.get(path)
        identity = self.client.json_body(resp)
        if not isinstance(identity, dict):
            raise KratosAPIError(resp.status_code, "Malformed response from identity service", resp.url)
        for field_name in SERVER_MANAGED_FIELDS:
            identity.pop(field_name, None)
        traits = dict(identity.get("traits") or {})
        traits["status"] = status
        identity["traits"] = traits
        self.client.put(path, json=identity)
        print(f"[identities] Identity {identity_id} status set to '{status}'", file=sys.stderr)

    def delete_identity(self, identity_id: str) -> None:
        """Delete an identity."""
        self.client.delete(f"/identities/{identity_id}")
        print(f"[identities] Identity {identity_id} deleted", file=sys.stderr)
