"""Administer SOC user accounts from the command line.

This module serves as a CLI wrapper around souser.core services.

Usage:
    so-user list
    so-user add alice@example.com
    echo 'new-password' | so-user update alice@example.com
    so-user disable alice@example.com

Exit codes: 0 success, 1 failure, 2 invalid password, 3 invalid email.
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from souser.config import load_settings
from souser.core.kratos import (
    KratosClient,
    IdentityService,
    CredentialStore,
    SoUserError,
    EXIT_FAILURE,
)
from souser.core.notifiers import NullNotifier, build_notifier
from souser.core.passwords import Argon2Parameters, read_password
from souser.core.preflight import check_environment
from souser.core.user_admin import UserAdmin
from souser.core.validators import validate_email
from scripts import audit

COMMANDS = ("list", "add", "update", "enable", "disable", "delete", "validate", "valemail", "valpass")
EMAIL_COMMANDS = {"add", "update", "enable", "disable", "delete", "validate", "valemail"}
PASSWORD_COMMANDS = {"add", "update", "validate", "valpass"}
VALIDATION_COMMANDS = {"validate", "valemail", "valpass"}
NOTIFYING_COMMANDS = {"add", "enable", "disable", "delete"}

SUCCESS_MESSAGES = {
    "add": "Successfully added new user to SOC",
    "update": "Successfully updated user",
    "enable": "Successfully enabled user",
    "disable": "Successfully disabled user",
    "delete": "Successfully deleted user",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="so-user",
        description="SOC user administration",
        epilog="Passwords may be piped via standard input; otherwise they are prompted for.",
    )
    parser.add_argument("--kratos-url", default=None, help="Identity service admin URL (env: KRATOS_URL)")
    parser.add_argument("--database-path", default=None, help="Credential database file (env: DATABASE_PATH)")
    parser.add_argument("--operator", default="cli", help="Operator identifier for audit logs (default: cli)")
    parser.add_argument("operation", choices=COMMANDS)
    parser.add_argument("email", nargs="?")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Command-line entry point."""
    args = build_parser().parse_args(argv)
    cmd = args.operation
    email = args.email

    try:
        settings = load_settings()
    except ValueError as e:
        print(f"[{cmd}] Error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILURE)
    if args.kratos_url:
        settings.kratos_url = args.kratos_url
    if args.database_path:
        settings.database_path = args.database_path

    try:
        # Input is validated before the identity service is contacted
        if cmd in EMAIL_COMMANDS:
            validate_email(email)
        password = read_password() if cmd in PASSWORD_COMMANDS else None
        if cmd in VALIDATION_COMMANDS:
            return

        client = KratosClient(settings.kratos_url)
        check_environment(settings, client)

        notifier = build_notifier(settings.notifiers) if cmd in NOTIFYING_COMMANDS else NullNotifier()
        admin = UserAdmin(
            IdentityService(client),
            CredentialStore(settings.database_path),
            notifier,
            Argon2Parameters.from_settings(settings),
        )

        details = {}
        if cmd == "list":
            for user_email in admin.list_users():
                print(user_email)
            return
        elif cmd == "add":
            details["identity_id"] = admin.add_user(email, password)
            details["notifier"] = notifier.name
        elif cmd == "update":
            admin.update_user(email, password)
        elif cmd == "enable":
            admin.enable_user(email)
            details["notifier"] = notifier.name
        elif cmd == "disable":
            details["sessions_deleted"] = admin.disable_user(email)
            details["notifier"] = notifier.name
        elif cmd == "delete":
            admin.delete_user(email)
            details["notifier"] = notifier.name
    except SoUserError as e:
        print(f"[{cmd}] Error: {e}", file=sys.stderr)
        failure = {"error": str(e)}
        identity_id = getattr(e, "identity_id", None)
        if identity_id:
            # The SOC change went through; only an integration lagged behind
            print(f"[{cmd}] SOC change for identity {identity_id} completed; integration not updated", file=sys.stderr)
            failure.update(identity_id=identity_id, identity_changed=True)
        if cmd in SUCCESS_MESSAGES:
            audit.safe_log_user_event(
                cmd,
                email or "",
                operator=args.operator,
                details=failure,
                success=False,
            )
        sys.exit(e.exit_code)

    audit.safe_log_user_event(cmd, email, operator=args.operator, details=details, success=True)
    print(SUCCESS_MESSAGES[cmd])


if __name__ == "__main__":
    main()
