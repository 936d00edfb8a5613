"""
SQLAlchemy implementation of the role store read port.

Each call opens its own short-lived session so no transaction is held
across the resolver's suspension points.
"""
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gatekeeper.features.authorization.errors import DependencyFailure, NotFound
from gatekeeper.features.roles.models import Permission, Role, User, role_permissions, user_roles
from gatekeeper.utils import get_logger


log = get_logger(__name__)


class SqlAlchemyRoleStore:
    """
    Role store backed by the users/roles/permissions tables.

    Usage:
        store = SqlAlchemyRoleStore(AsyncSessionLocal)
        role_ids = await store.get_user_role_ids(user_id)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_user_role_ids(self, user_id: str) -> set[str]:
        """
        Get the ids of roles directly assigned to a user.

        A deactivated user keeps their assignment rows but holds no roles.

        Raises:
            NotFound: if no user with this id exists
            DependencyFailure: on any database error
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(User.is_active).where(User.id == user_id))
                is_active = result.scalar_one_or_none()
                if is_active is None:
                    raise NotFound("user", user_id)
                if not is_active:
                    log.info(f"User {user_id} is inactive, ignoring role assignments")
                    return set()

                result = await session.execute(
                    select(user_roles.c.role_id).where(user_roles.c.user_id == user_id)
                )
                return set(result.scalars().all())
        except SQLAlchemyError as e:
            log.error(f"Failed to load roles for user {user_id}: {e}")
            raise DependencyFailure(f"Failed to load roles for user {user_id!r}") from e

    async def get_role_parents(self, role_ids: Iterable[str]) -> dict[str, str | None]:
        """Get the parent id of every known role in a single query."""
        role_ids = list(role_ids)
        if not role_ids:
            return {}

        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Role.id, Role.parent_id).where(Role.id.in_(role_ids))
                )
                return {role_id: parent_id for role_id, parent_id in result.all()}
        except SQLAlchemyError as e:
            log.error(f"Failed to load role parents: {e}")
            raise DependencyFailure("Failed to load role parents") from e

    async def get_role_permission_keys(self, role_ids: Iterable[str]) -> set[str]:
        """Get the keys of permissions directly assigned to any of the roles."""
        role_ids = list(role_ids)
        if not role_ids:
            return set()

        try:
            async with self.session_factory() as session:
                stmt = (
                    select(Permission.key)
                    .join(role_permissions, role_permissions.c.permission_id == Permission.id)
                    .where(role_permissions.c.role_id.in_(role_ids))
                    .distinct()
                )
                result = await session.execute(stmt)
                return set(result.scalars().all())
        except SQLAlchemyError as e:
            log.error(f"Failed to load role permissions: {e}")
            raise DependencyFailure("Failed to load role permissions") from e
