"""Typed exceptions for user administration, each carrying its exit code."""

EXIT_FAILURE = 1
EXIT_INVALID_PASSWORD = 2
EXIT_INVALID_EMAIL = 3


class SoUserError(Exception):
    """Base exception for all user administration operations."""
    exit_code = EXIT_FAILURE


class EnvironmentCheckError(SoUserError):
    """A required tool, file or service is unavailable."""
    pass


class ValidationError(SoUserError):
    """User-supplied input was rejected before any mutating call."""
    pass


class InvalidEmailError(ValidationError):
    """Email address does not match the accepted format."""
    exit_code = EXIT_INVALID_EMAIL


class InvalidPasswordError(ValidationError):
    """Password is too short or missing."""
    exit_code = EXIT_INVALID_PASSWORD


class KratosAPIError(SoUserError):
    """HTTP error from the identity admin API.

    Attributes:
        status_code: HTTP status code (or error.code from the body)
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(message or f"[{status_code}] {endpoint}")


class IdentityNotFoundError(SoUserError):
    """Identity lookup failed - no identity has this email."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class IdentityAlreadyExistsError(SoUserError):
    """Identity creation failed - email already registered."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


class PasswordHashingError(SoUserError):
    """Argon2 rejected the configured cost parameters."""
    pass


class CredentialStoreError(SoUserError):
    """Credential database could not be read or holds a malformed record."""
    pass


class NotifierError(SoUserError):
    """An integration command exited with a failure.

    Attributes:
        identity_id: Identity whose SOC change had already completed when
            the integration failed, if any
    """
    identity_id = None
