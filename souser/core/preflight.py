"""Environment checks run before any identity service operation."""
from __future__ import annotations
import shutil
from pathlib import Path

from souser.config.settings import Settings

from .kratos.client import KratosClient
from .kratos.exceptions import EnvironmentCheckError


def check_environment(settings: Settings, client: KratosClient) -> None:
    """Verify required tools, the credential database and the identity service.

    Raises:
        EnvironmentCheckError: On the first failed check
    """
    for tool in settings.required_tools:
        if shutil.which(tool) is None:
            raise EnvironmentCheckError(f"This script requires the following command to be installed: {tool}")

    if not Path(settings.database_path).is_file():
        raise EnvironmentCheckError(f"Unable to find database file; specify path via DATABASE_PATH environment variable: {settings.database_path}")

    if not client.is_reachable():
        raise EnvironmentCheckError(f"Unable to communicate with the identity service at {client.base_url}; specify URL via KRATOS_URL environment variable")
