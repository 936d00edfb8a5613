"""Read ports consumed by the authorization core."""
from collections.abc import Mapping
from typing import Protocol

from gatekeeper.features.conditions.types import Condition


class RoleStore(Protocol):
    """Read-only queries over user->role, role->parent and role->permission."""

    async def get_user_role_ids(self, user_id: str) -> set[str]:
        """Raises NotFound when the user is unknown."""
        ...

    async def get_role_parents(self, role_ids: set[str]) -> Mapping[str, str | None]: ...

    async def get_role_permission_keys(self, role_ids: set[str]) -> set[str]: ...


class ConditionSource(Protocol):
    """Lookup of the condition guarding an operation. None means open access."""

    async def get_condition_for_operation(self, operation_id: str) -> Condition | None: ...
