"""SOC user administration package.

To administer identities from Python:
    from souser.core.user_admin import UserAdmin

The command-line entry point lives in scripts/user_admin.py.
"""
