"""Password collection and Argon2id hashing."""
from __future__ import annotations
import getpass
import secrets
import sys
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret

from .kratos.exceptions import PasswordHashingError
from .validators import validate_password

PROMPT = "Enter new password: "
SALT_BYTES = 8


@dataclass(frozen=True)
class Argon2Parameters:
    """Argon2id cost parameters; ``memory`` is log2 of the cost in KiB."""
    iterations: int = 3
    memory: int = 14
    parallelism: int = 2
    hash_length: int = 32

    @classmethod
    def from_settings(cls, settings) -> "Argon2Parameters":
        return cls(
            iterations=settings.argon2_iterations,
            memory=settings.argon2_memory,
            parallelism=settings.argon2_parallelism,
            hash_length=settings.argon2_hash_length,
        )

    @property
    def memory_cost(self) -> int:
        return 2 ** self.memory


def read_password(
    stdin: Optional[TextIO] = None,
    prompt: Callable[[str], str] = getpass.getpass,
) -> str:
    """Collect and validate a password.

    Piped input is read from ``stdin`` without printing a prompt; an
    interactive terminal gets a no-echo prompt instead.

    Raises:
        InvalidPasswordError: If the password is too short
    """
    stream = stdin if stdin is not None else sys.stdin
    if stream.isatty():
        password = prompt(PROMPT)
    else:
        password = stream.readline().rstrip("\r\n")
    return validate_password(password)


def hash_password(password: str, params: Argon2Parameters, salt: Optional[str] = None) -> str:
    """Derive an encoded Argon2id hash with a fresh random salt.

    Args:
        password: Cleartext password
        params: Argon2id cost parameters
        salt: Hex salt; a new 8-byte value is generated when omitted

    Returns:
        PHC-encoded hash (``$argon2id$v=19$...``)

    Raises:
        PasswordHashingError: If Argon2 rejects the cost parameters
    """
    salt = salt or secrets.token_hex(SALT_BYTES)
    try:
        encoded = hash_secret(
            password.encode("utf-8"),
            salt.encode("ascii"),
            time_cost=params.iterations,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=params.hash_length,
            type=Type.ID,
        )
    except (HashingError, OverflowError) as exc:
        raise PasswordHashingError(f"Unable to hash password: {exc}") from exc
    return encoded.decode("ascii")
