"""
Gatekeeper: role-based authorization decisions.
"""
__version__ = "0.1.0"
