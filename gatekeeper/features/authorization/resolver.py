"""
Effective permission resolution.

A user's permissions are the union of the permissions directly assigned to
every role in the closure of their directly assigned roles under the parent
relation.
"""
from gatekeeper.features.authorization.errors import AuthorizationError, DependencyFailure
from gatekeeper.features.authorization.ports import RoleStore
from gatekeeper.utils import get_logger


log = get_logger(__name__)


class PermissionResolver:
    """
    Computes effective permission keys through a role store.

    The role hierarchy is walked breadth-first with an explicit visited set,
    so a cycle in stored parent links ends the walk instead of looping.
    """

    def __init__(self, store: RoleStore):
        self.store = store

    async def resolve(self, user_id: str) -> frozenset[str]:
        """
        Get every permission key the user holds.

        Raises:
            NotFound: if the user is unknown to the store
            DependencyFailure: if any store query fails
        """
        try:
            direct_role_ids = set(await self.store.get_user_role_ids(user_id))
            role_ids = await self._role_closure(direct_role_ids)
            keys = await self.store.get_role_permission_keys(role_ids) if role_ids else set()
        except AuthorizationError:
            raise
        except Exception as e:
            log.error(f"Permission resolution failed for user {user_id}: {e}")
            raise DependencyFailure(f"Failed to resolve permissions for user {user_id!r}") from e

        log.debug(
            f"Resolved {len(keys)} permissions for user {user_id} "
            f"from {len(role_ids)} roles ({len(direct_role_ids)} direct)"
        )
        return frozenset(keys)

    async def _role_closure(self, role_ids: set[str]) -> set[str]:
        """
        Expand role ids with all their ancestors.

        1. Seed visited with the direct roles
        2. Fetch parents of the current frontier in one batch
        3. Keep parents not seen before as the next frontier
        4. Stop when the frontier is empty
        """
        visited = set(role_ids)
        frontier = set(role_ids)

        while frontier:
            parents = await self.store.get_role_parents(frontier)
            frontier = {
                parent_id
                for parent_id in parents.values()
                if parent_id is not None and parent_id not in visited
            }
            visited |= frontier

        return visited
