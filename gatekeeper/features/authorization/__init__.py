"""
Authorization feature module.

Resolves a user's effective permissions through the role hierarchy and
decides allow/deny for protected operations.
"""
