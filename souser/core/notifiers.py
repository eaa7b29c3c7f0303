"""Notifications to integrations that mirror the SOC user list.

The case-management and endpoint-management tools keep their own user
accounts. When their containers are running on this host, each lifecycle
change is forwarded to them through their admin commands.
"""
from __future__ import annotations
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from .kratos.exceptions import EnvironmentCheckError, NotifierError

Runner = Callable[..., subprocess.CompletedProcess]


class Notifier:
    """Receives user lifecycle events. The base implementation ignores them."""

    name = "none"

    def user_added(self, email: str) -> None:
        pass

    def user_enabled(self, email: str, enabled: bool) -> None:
        pass

    def user_deleted(self, email: str) -> None:
        pass


class NullNotifier(Notifier):
    """Used when no integration is present."""
    pass


class CommandNotifier(Notifier):
    """Forwards events to an integration's admin commands.

    Args:
        name: Integration name for messages
        add_command: Command invoked as ``<cmd> <email>``
        enable_command: Command invoked as ``<cmd> <email> <true|false>``
        delete_command: Command invoked as ``<cmd> <email>``; when absent,
            deletion disables the user in the integration instead
        runner: ``subprocess.run`` compatible callable
    """

    def __init__(
        self,
        name: str,
        add_command: str,
        enable_command: str,
        delete_command: Optional[str] = None,
        runner: Runner = subprocess.run,
    ):
        self.name = name
        self.add_command = add_command
        self.enable_command = enable_command
        self.delete_command = delete_command
        self.runner = runner

    def user_added(self, email: str) -> None:
        self._run([self.add_command, email])

    def user_enabled(self, email: str, enabled: bool) -> None:
        self._run([self.enable_command, email, "true" if enabled else "false"])

    def user_deleted(self, email: str) -> None:
        if self.delete_command:
            self._run([self.delete_command, email])
        else:
            self.user_enabled(email, False)

    def _run(self, args: List[str]) -> None:
        try:
            result = self.runner(args, capture_output=True, text=True)
        except OSError as exc:
            raise NotifierError(f"Unable to run {args[0]}: {exc}") from exc
        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            raise NotifierError(f"{args[0]} failed with exit code {result.returncode}: {detail}")
        print(f"[{self.name}] {' '.join(args)}", file=sys.stderr)


class NotifierGroup(Notifier):
    """Fans each event out to several notifiers, in order."""

    name = "group"

    def __init__(self, notifiers: Iterable[Notifier]):
        self.notifiers = list(notifiers)

    def user_added(self, email: str) -> None:
        for notifier in self.notifiers:
            notifier.user_added(email)

    def user_enabled(self, email: str, enabled: bool) -> None:
        for notifier in self.notifiers:
            notifier.user_enabled(email, enabled)

    def user_deleted(self, email: str) -> None:
        for notifier in self.notifiers:
            notifier.user_deleted(email)


@dataclass(frozen=True)
class Integration:
    """An integration that runs in its own container."""
    name: str
    container: str
    add_command: str
    enable_command: str
    delete_command: Optional[str] = None

    @property
    def commands(self) -> List[str]:
        return [c for c in (self.add_command, self.enable_command, self.delete_command) if c]


INTEGRATIONS = (
    Integration(
        name="case-management",
        container="so-thehive",
        add_command="so-thehive-user-add",
        enable_command="so-thehive-user-enable",
    ),
    Integration(
        name="endpoint-management",
        container="so-fleet",
        add_command="so-fleet-user-add",
        enable_command="so-fleet-user-enable",
        delete_command="so-fleet-user-delete",
    ),
)


def container_running(container: str, runner: Runner = subprocess.run) -> bool:
    """Return True when a container with this exact name is running."""
    if shutil.which("docker") is None:
        return False
    try:
        result = runner(
            ["docker", "ps", "--filter", f"name={container}", "--format", "{{.Names}}"],
            capture_output=True,
            text=True,
        )
    except OSError:
        return False
    if result.returncode != 0:
        return False
    return container in result.stdout.split()


def build_notifier(
    mode: str = "auto",
    integrations: Iterable[Integration] = INTEGRATIONS,
    runner: Runner = subprocess.run,
) -> Notifier:
    """Build the notifier for the integrations running on this host.

    Raises:
        EnvironmentCheckError: If a running integration's command is not on PATH
    """
    if mode == "none":
        return NullNotifier()

    active: List[Notifier] = []
    for integration in integrations:
        if not container_running(integration.container, runner):
            continue
        missing = [cmd for cmd in integration.commands if shutil.which(cmd) is None]
        if missing:
            raise EnvironmentCheckError(
                f"{integration.container} is running but {', '.join(missing)} not found on PATH"
            )
        active.append(
            CommandNotifier(
                integration.name,
                integration.add_command,
                integration.enable_command,
                integration.delete_command,
                runner=runner,
            )
        )

    if not active:
        return NullNotifier()
    if len(active) == 1:
        return active[0]
    return NotifierGroup(active)
