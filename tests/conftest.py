"""
Pytest fixtures for gatekeeper tests.
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from gatekeeper.core.database.engine import build_engine, init_db
from gatekeeper.features.authorization.decision import Authorizer
from gatekeeper.features.authorization.resolver import PermissionResolver
from gatekeeper.features.conditions.registry import ConditionRegistry
from gatekeeper.features.roles.memory import InMemoryRoleStore
from gatekeeper.features.roles.models import Permission, Role, User, role_permissions, user_roles


@pytest.fixture
def role_store() -> InMemoryRoleStore:
    """
    Small role catalog:

        admin -> editor -> viewer       (parent links)
        loop_a <-> loop_b               (cycle)
    """
    store = InMemoryRoleStore()
    store.add_role("viewer", None, ["docs:read"])
    store.add_role("editor", "viewer", ["docs:write"])
    store.add_role("admin", "editor", ["admin"])
    store.add_role("loop_a", "loop_b", ["p1"])
    store.add_role("loop_b", "loop_a", ["p2"])

    store.add_user("alice", "admin")
    store.add_user("bob", "viewer")
    store.add_user("carol", "loop_a")
    store.add_user("nobody")
    return store


@pytest.fixture
def registry() -> ConditionRegistry:
    return ConditionRegistry()


@pytest.fixture
def authorizer(role_store: InMemoryRoleStore, registry: ConditionRegistry) -> Authorizer:
    return Authorizer(PermissionResolver(role_store), registry)


# ============================================================================
# Database fixtures
# ============================================================================

@pytest_asyncio.fixture
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with all tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


async def seed_catalog(
    session_factory: async_sessionmaker[AsyncSession],
    roles: dict[str, str | None],
    permissions: dict[str, list[str]],
    users: dict[str, list[str]],
) -> None:
    """
    Insert roles (id -> parent id), role permissions (role id -> keys) and
    users (id -> role ids). Parent links are written after every role
    exists so cycles can be stored.
    """
    async with session_factory() as session:
        for role_id in roles:
            session.add(Role(id=role_id, name=role_id))
        await session.flush()

        for role_id, parent_id in roles.items():
            role = await session.get(Role, role_id)
            role.parent_id = parent_id
        await session.flush()

        permission_ids: dict[str, str] = {}
        for role_id, keys in permissions.items():
            for key in keys:
                if key not in permission_ids:
                    permission = Permission(key=key, description=f"Permission {key}")
                    session.add(permission)
                    await session.flush()
                    permission_ids[key] = permission.id
                await session.execute(
                    insert(role_permissions).values(role_id=role_id, permission_id=permission_ids[key])
                )

        for user_id, role_ids in users.items():
            session.add(User(id=user_id, email=f"{user_id}@example.com", name=user_id.title()))
            await session.flush()
            for role_id in role_ids:
                await session.execute(insert(user_roles).values(user_id=user_id, role_id=role_id))

        await session.commit()


@pytest.fixture
def seed(session_factory):
    """Seed the test database; see `seed_catalog`."""
    async def _seed(roles, permissions, users):
        await seed_catalog(session_factory, roles, permissions, users)
    return _seed
