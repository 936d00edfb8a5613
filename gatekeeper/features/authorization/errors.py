"""
Authorization error taxonomy.

Only `Forbidden` is an expected outcome of a decision. `NotFound`,
`ConfigurationError` and `DependencyFailure` are faults and must reach the
caller unchanged; none of them may ever be treated as an implicit allow.
"""


FORBIDDEN_MESSAGE = "You don't have permission to access this endpoint!"


class AuthorizationError(Exception):
    """Base class for every error raised by the authorization core."""


class NotFound(AuthorizationError):
    """
    An identity or role referenced by a query is unknown.

    Example:
        raise NotFound("user", user_id)
    """

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier!r} not found")


class Forbidden(AuthorizationError):
    """The operation's condition evaluated to false for the requester."""

    def __init__(self, operation_id: str | None = None, message: str = FORBIDDEN_MESSAGE):
        self.operation_id = operation_id
        self.message = message
        super().__init__(message)


class ConfigurationError(AuthorizationError):
    """A condition tree or its registration is malformed."""


class DependencyFailure(AuthorizationError):
    """A data port or condition metadata port call failed."""
