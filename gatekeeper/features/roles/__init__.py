"""
Role store: users, roles with single-parent inheritance, and permissions.
"""
