"""Kratos identity service access.

Architecture:
- client.py: HTTP client for the admin API
- identities.py: Identity lookup, creation, status and deletion
- credentials.py: Credential database (password hashes, sessions)
- exceptions.py: Typed exceptions carrying CLI exit codes

Usage:
    from souser.core.kratos import KratosClient, IdentityService, CredentialStore

    identities = IdentityService(KratosClient("http://127.0.0.1:4434"))
    identity_id = identities.find_identity_id("alice@example.com")
    CredentialStore("/opt/so/conf/kratos/db/db.sqlite").lock(identity_id)
"""
from .client import (
    KratosClient,
    REQUEST_TIMEOUT,
    DEFAULT_KRATOS_URL,
)
from .exceptions import (
    EXIT_FAILURE,
    EXIT_INVALID_PASSWORD,
    EXIT_INVALID_EMAIL,
    SoUserError,
    EnvironmentCheckError,
    ValidationError,
    InvalidEmailError,
    InvalidPasswordError,
    KratosAPIError,
    IdentityNotFoundError,
    IdentityAlreadyExistsError,
    CredentialStoreError,
    PasswordHashingError,
    NotifierError,
)
from .identities import (
    IdentityService,
    identity_email,
    STATUS_ACTIVE,
    STATUS_LOCKED,
)
from .credentials import (
    CredentialStore,
    Credential,
    HashedCredential,
    LockedCredential,
    parse_credential_config,
    apply_credential,
    HASHED_KEY,
    LOCKED_KEY,
)

__all__ = [
    # Client
    "KratosClient",
    "REQUEST_TIMEOUT",
    "DEFAULT_KRATOS_URL",

    # Exceptions
    "EXIT_FAILURE",
    "EXIT_INVALID_PASSWORD",
    "EXIT_INVALID_EMAIL",
    "SoUserError",
    "EnvironmentCheckError",
    "ValidationError",
    "InvalidEmailError",
    "InvalidPasswordError",
    "KratosAPIError",
    "IdentityNotFoundError",
    "IdentityAlreadyExistsError",
    "CredentialStoreError",
    "PasswordHashingError",
    "NotifierError",

    # Identities
    "IdentityService",
    "identity_email",
    "STATUS_ACTIVE",
    "STATUS_LOCKED",

    # Credentials
    "CredentialStore",
    "Credential",
    "HashedCredential",
    "LockedCredential",
    "parse_credential_config",
    "apply_credential",
    "HASHED_KEY",
    "LOCKED_KEY",
]
