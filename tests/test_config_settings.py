import pytest

from souser.config import Settings, load_settings
from souser.config.settings import DEFAULT_DATABASE_PATH, DEFAULT_KRATOS_URL


def test_defaults(monkeypatch):
    monkeypatch.delenv("ARGON2_MEMORY", raising=False)
    monkeypatch.delenv("SO_USER_NOTIFIERS", raising=False)

    settings = load_settings()

    assert settings == Settings()
    assert settings.kratos_url == DEFAULT_KRATOS_URL == "http://127.0.0.1:4434"
    assert settings.database_path == DEFAULT_DATABASE_PATH
    assert (settings.argon2_iterations, settings.argon2_memory, settings.argon2_parallelism, settings.argon2_hash_length) == (3, 14, 2, 32)
    assert settings.notifiers == "auto"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("KRATOS_URL", "http://kratos:4434")
    monkeypatch.setenv("DATABASE_PATH", "/tmp/kratos.sqlite")
    monkeypatch.setenv("ARGON2_ITERATIONS", "5")
    monkeypatch.setenv("ARGON2_MEMORY", "16")
    monkeypatch.setenv("ARGON2_PARALLELISM", "4")
    monkeypatch.setenv("ARGON2_HASH_LENGTH", "64")
    monkeypatch.setenv("SO_USER_REQUIRED_TOOLS", "docker, so-fleet-user-add,")
    monkeypatch.setenv("SO_USER_NOTIFIERS", "NONE")

    settings = load_settings()

    assert settings.kratos_url == "http://kratos:4434"
    assert settings.database_path == "/tmp/kratos.sqlite"
    assert settings.argon2_iterations == 5
    assert settings.argon2_memory == 16
    assert settings.argon2_parallelism == 4
    assert settings.argon2_hash_length == 64
    assert settings.required_tools == ["docker", "so-fleet-user-add"]
    assert settings.notifiers == "none"


@pytest.mark.parametrize("value", ["abc", "0", "-1"])
def test_invalid_integer(monkeypatch, value):
    monkeypatch.setenv("ARGON2_PARALLELISM", value)

    with pytest.raises(ValueError, match="ARGON2_PARALLELISM"):
        load_settings()


def test_invalid_notifier_mode(monkeypatch):
    monkeypatch.setenv("SO_USER_NOTIFIERS", "sometimes")

    with pytest.raises(ValueError, match="SO_USER_NOTIFIERS"):
        load_settings()


@pytest.mark.parametrize(
    "var, value",
    [
        ("ARGON2_MEMORY", "1"),
        ("ARGON2_MEMORY", "40"),
        ("ARGON2_HASH_LENGTH", "1"),
        ("ARGON2_HASH_LENGTH", "3"),
    ],
)
def test_argon2_out_of_range(monkeypatch, var, value):
    monkeypatch.setenv(var, value)

    with pytest.raises(ValueError, match=var):
        load_settings()


def test_argon2_memory_must_cover_parallelism(monkeypatch):
    monkeypatch.setenv("ARGON2_MEMORY", "4")
    monkeypatch.setenv("ARGON2_PARALLELISM", "4")

    with pytest.raises(ValueError, match="ARGON2_MEMORY .* ARGON2_PARALLELISM=4"):
        load_settings()
