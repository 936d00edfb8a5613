"""
Authorization decision.

Composes the permission resolver, the condition source and the evaluator.
A failure anywhere along the way propagates; it never becomes an allow.
"""
from gatekeeper.features.authorization.errors import (
    FORBIDDEN_MESSAGE,
    AuthorizationError,
    DependencyFailure,
    Forbidden,
)
from gatekeeper.features.authorization.ports import ConditionSource
from gatekeeper.features.authorization.resolver import PermissionResolver
from gatekeeper.features.conditions.evaluator import evaluate
from gatekeeper.features.conditions.types import Condition, InvocationContext
from gatekeeper.utils import get_logger


log = get_logger(__name__)


class Authorizer:
    """
    Decides whether a user may invoke an operation.

    Usage:
        authorizer = Authorizer(PermissionResolver(store), registry)
        await authorizer.authorize("reports.export", user_id)
    """

    def __init__(
        self,
        resolver: PermissionResolver,
        conditions: ConditionSource,
        forbidden_message: str = FORBIDDEN_MESSAGE,
    ):
        self.resolver = resolver
        self.conditions = conditions
        self.forbidden_message = forbidden_message

    async def authorize(
        self,
        operation_id: str,
        user_id: str,
        context: InvocationContext | None = None,
    ) -> None:
        """
        Allow the call by returning, deny it by raising Forbidden.

        Raises:
            Forbidden: if the operation's condition is false for the user
            NotFound: if the user is unknown
            ConfigurationError: if the condition is malformed
            DependencyFailure: if a port fails
        """
        if not await self.is_allowed(operation_id, user_id, context):
            log.info(f"User {user_id} denied operation {operation_id!r}")
            raise Forbidden(operation_id, self.forbidden_message)

        log.debug(f"User {user_id} granted operation {operation_id!r}")

    async def is_allowed(
        self,
        operation_id: str,
        user_id: str,
        context: InvocationContext | None = None,
    ) -> bool:
        """Same as `authorize` but returns the outcome instead of raising Forbidden."""
        if context is None:
            context = InvocationContext(operation_id=operation_id, user_id=user_id)

        permissions = await self.resolver.resolve(user_id)
        condition = await self._load_condition(operation_id)
        return await evaluate(condition, permissions, context)

    async def get_user_permissions(self, user_id: str) -> frozenset[str]:
        return await self.resolver.resolve(user_id)

    async def _load_condition(self, operation_id: str) -> Condition | None:
        try:
            return await self.conditions.get_condition_for_operation(operation_id)
        except AuthorizationError:
            raise
        except Exception as e:
            log.error(f"Condition lookup failed for operation {operation_id!r}: {e}")
            raise DependencyFailure(f"Failed to load condition for operation {operation_id!r}") from e
