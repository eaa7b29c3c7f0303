"""Settings loader backed by environment variables."""
from __future__ import annotations
import os
from dataclasses import dataclass, field

DEFAULT_KRATOS_URL = "http://127.0.0.1:4434"
DEFAULT_DATABASE_PATH = "/opt/so/conf/kratos/db/db.sqlite"
NOTIFIER_MODES = ("auto", "none")

# Argon2 limits; memory is a log2 exponent so 2**31 KiB still fits 32 bits
MAX_ARGON2_MEMORY = 31
MAX_ARGON2_PARALLELISM = 2 ** 24 - 1
MIN_ARGON2_HASH_LENGTH = 4
MAX_UINT32 = 2 ** 32 - 1


@dataclass
class Settings:
    """User administration configuration container."""
    # Identity service
    kratos_url: str = DEFAULT_KRATOS_URL
    database_path: str = DEFAULT_DATABASE_PATH

    # Argon2id parameters (memory is a power-of-two exponent, in KiB)
    argon2_iterations: int = 3
    argon2_memory: int = 14
    argon2_parallelism: int = 2
    argon2_hash_length: int = 32

    # Preflight
    required_tools: list[str] = field(default_factory=list)

    # Integrations: "auto" looks for running containers, "none" disables them
    notifiers: str = "auto"


def _get_int(var_name: str, default: int) -> int:
    """Read a positive integer from the environment."""
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {var_name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"Environment variable {var_name} must be positive, got {value}")
    return value


def _get_list(var_name: str) -> list[str]:
    raw = os.environ.get(var_name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def _check_argon2(settings: Settings) -> None:
    """Reject Argon2 parameters outside what the algorithm accepts."""
    if settings.argon2_memory > MAX_ARGON2_MEMORY:
        raise ValueError(f"ARGON2_MEMORY must be at most {MAX_ARGON2_MEMORY}, got {settings.argon2_memory}")
    if 2 ** settings.argon2_memory < 8 * settings.argon2_parallelism:
        raise ValueError(
            f"ARGON2_MEMORY must give at least 8 KiB per lane (2**{settings.argon2_memory} KiB "
            f"for ARGON2_PARALLELISM={settings.argon2_parallelism})"
        )
    if settings.argon2_parallelism > MAX_ARGON2_PARALLELISM:
        raise ValueError(f"ARGON2_PARALLELISM must be at most {MAX_ARGON2_PARALLELISM}, got {settings.argon2_parallelism}")
    if settings.argon2_hash_length < MIN_ARGON2_HASH_LENGTH:
        raise ValueError(f"ARGON2_HASH_LENGTH must be at least {MIN_ARGON2_HASH_LENGTH}, got {settings.argon2_hash_length}")
    if settings.argon2_iterations > MAX_UINT32:
        raise ValueError(f"ARGON2_ITERATIONS must be at most {MAX_UINT32}, got {settings.argon2_iterations}")
    if settings.argon2_hash_length > MAX_UINT32:
        raise ValueError(f"ARGON2_HASH_LENGTH must be at most {MAX_UINT32}, got {settings.argon2_hash_length}")


def load_settings() -> Settings:
    """Load settings from the environment, falling back to defaults."""
    notifiers = os.environ.get("SO_USER_NOTIFIERS", "auto").strip().lower() or "auto"
    if notifiers not in NOTIFIER_MODES:
        raise ValueError(f"SO_USER_NOTIFIERS must be one of {', '.join(NOTIFIER_MODES)}, got {notifiers!r}")

    settings = Settings(
        kratos_url=os.environ.get("KRATOS_URL") or DEFAULT_KRATOS_URL,
        database_path=os.environ.get("DATABASE_PATH") or DEFAULT_DATABASE_PATH,
        argon2_iterations=_get_int("ARGON2_ITERATIONS", 3),
        argon2_memory=_get_int("ARGON2_MEMORY", 14),
        argon2_parallelism=_get_int("ARGON2_PARALLELISM", 2),
        argon2_hash_length=_get_int("ARGON2_HASH_LENGTH", 32),
        required_tools=_get_list("SO_USER_REQUIRED_TOOLS"),
        notifiers=notifiers,
    )
    _check_argon2(settings)
    return settings
