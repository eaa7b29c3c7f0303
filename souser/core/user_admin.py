"""User lifecycle operations for the SOC.

Each operation is a short, strictly ordered sequence of identity service
calls and credential database statements. A failing step aborts the
operation; earlier steps are not rolled back.
"""
from __future__ import annotations
from typing import List, Optional

from .kratos.credentials import CredentialStore
from .kratos.identities import IdentityService, STATUS_ACTIVE, STATUS_LOCKED
from .kratos.exceptions import NotifierError
from .notifiers import Notifier, NullNotifier
from .passwords import Argon2Parameters, hash_password


class UserAdmin:
    """Coordinates the identity service, credential database and integrations."""

    def __init__(
        self,
        identities: IdentityService,
        credentials: CredentialStore,
        notifier: Optional[Notifier] = None,
        hash_params: Optional[Argon2Parameters] = None,
    ):
        self.identities = identities
        self.credentials = credentials
        self.notifier = notifier or NullNotifier()
        self.hash_params = hash_params or Argon2Parameters()

    def list_users(self) -> List[str]:
        """Return the sorted email of every user."""
        return self.identities.list_emails()

    def add_user(self, email: str, password: str) -> str:
        """Create a user, set their password and announce them to integrations.

        Returns:
            The new identity id

        Raises:
            IdentityAlreadyExistsError: If the email is already registered
        """
        password_hash = hash_password(password, self.hash_params)
        identity_id = self.identities.create_identity(email)
        self.credentials.set_password_hash(identity_id, password_hash)
        self._notify(identity_id, self.notifier.user_added, email)
        return identity_id

    def update_user(self, email: str, password: str) -> None:
        """Set a new password for an existing user."""
        identity_id = self.identities.find_identity_id(email)
        self.credentials.set_password_hash(identity_id, hash_password(password, self.hash_params))

    def enable_user(self, email: str) -> None:
        """Reactivate a locked user. Sessions are left untouched."""
        identity_id = self.identities.find_identity_id(email)
        self.identities.set_status(identity_id, STATUS_ACTIVE)
        self.credentials.unlock(identity_id)
        self._notify(identity_id, self.notifier.user_enabled, email, True)

    def disable_user(self, email: str) -> int:
        """Lock a user and end all of their sessions.

        Returns:
            Number of sessions deleted
        """
        identity_id = self.identities.find_identity_id(email)
        self.identities.set_status(identity_id, STATUS_LOCKED)
        self.credentials.lock(identity_id)
        deleted = self.credentials.delete_sessions(identity_id)
        self._notify(identity_id, self.notifier.user_enabled, email, False)
        return deleted

    def delete_user(self, email: str) -> None:
        """Delete a user from the identity service and the integrations."""
        identity_id = self.identities.find_identity_id(email)
        self.identities.delete_identity(identity_id)
        self._notify(identity_id, self.notifier.user_deleted, email)

    @staticmethod
    def _notify(identity_id: str, event, *args) -> None:
        """Run a notifier event after the SOC change is done.

        A failure is tagged with the changed identity so callers can
        report that the change itself went through.
        """
        try:
            event(*args)
        except NotifierError as exc:
            exc.identity_id = identity_id
            raise
