"""Core user administration logic.

Module Structure:
    - kratos/           : Identity service client and credential database
    - validators.py     : Email and password validation
    - passwords.py      : Password collection and Argon2id hashing
    - notifiers.py      : Case/endpoint management integrations
    - preflight.py      : Environment checks
    - user_admin.py     : Lifecycle operations (add, update, enable, ...)

Usage Pattern:
    from souser.core.user_admin import UserAdmin
    from souser.core.kratos import KratosClient, IdentityService, CredentialStore
"""
