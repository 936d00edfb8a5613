"""
In-memory role store.

Holds the same three relations as the database tables in plain dicts. Used
by tests and by applications that define their role catalog in code.
"""
from collections.abc import Iterable

from gatekeeper.features.authorization.errors import NotFound


class InMemoryRoleStore:
    """
    Role store over dicts.

    Example:
        store = InMemoryRoleStore(
            user_roles={"alice": {"editor"}},
            role_parents={"editor": "viewer", "viewer": None},
            role_permissions={"editor": {"docs:write"}, "viewer": {"docs:read"}},
        )
    """

    def __init__(
        self,
        user_roles: dict[str, Iterable[str]] | None = None,
        role_parents: dict[str, str | None] | None = None,
        role_permissions: dict[str, Iterable[str]] | None = None,
    ):
        self.user_roles = {user: set(roles) for user, roles in (user_roles or {}).items()}
        self.role_parents = dict(role_parents or {})
        self.role_permissions = {role: set(keys) for role, keys in (role_permissions or {}).items()}

    def add_user(self, user_id: str, *role_ids: str) -> None:
        self.user_roles.setdefault(user_id, set()).update(role_ids)

    def add_role(self, role_id: str, parent_id: str | None = None, permissions: Iterable[str] = ()) -> None:
        self.role_parents[role_id] = parent_id
        self.role_permissions.setdefault(role_id, set()).update(permissions)

    async def get_user_role_ids(self, user_id: str) -> set[str]:
        if user_id not in self.user_roles:
            raise NotFound("user", user_id)
        return set(self.user_roles[user_id])

    async def get_role_parents(self, role_ids: Iterable[str]) -> dict[str, str | None]:
        return {role_id: self.role_parents.get(role_id) for role_id in role_ids}

    async def get_role_permission_keys(self, role_ids: Iterable[str]) -> set[str]:
        keys: set[str] = set()
        for role_id in role_ids:
            keys.update(self.role_permissions.get(role_id, ()))
        return keys
