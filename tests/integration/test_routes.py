"""HTTP tests for the FastAPI integration."""

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from gatekeeper.features.authorization.decision import Authorizer
from gatekeeper.features.authorization.dependencies import require_authorization
from gatekeeper.features.authorization.errors import FORBIDDEN_MESSAGE
from gatekeeper.features.authorization.resolver import PermissionResolver
from gatekeeper.features.conditions.registry import ConditionRegistry
from gatekeeper.features.conditions.types import InvocationContext, all_of, check, has
from gatekeeper.features.roles.memory import InMemoryRoleStore
from gatekeeper.main import create_app


class BrokenConditionSource:

    async def get_condition_for_operation(self, operation_id):
        raise RuntimeError("metadata unavailable")


def is_document_owner(context: InvocationContext) -> bool:
    return context.arguments.get("owner") == context.user_id


def build_app(authorizer: Authorizer) -> FastAPI:
    """Application with a stand-in authentication middleware and protected routes."""
    app = create_app(authorizer)

    @app.middleware("http")
    async def identity(request, call_next):
        user_id = request.headers.get("X-User-Id")
        if user_id:
            request.state.user_id = user_id
        return await call_next(request)

    @app.get("/documents/{doc_id}")
    async def read_document(doc_id: str, user_id: str = Depends(require_authorization("docs.read"))):
        return {"doc_id": doc_id, "user_id": user_id}

    @app.delete("/documents/{doc_id}")
    async def delete_document(doc_id: str, user_id: str = Depends(require_authorization("docs.delete"))):
        return {"deleted": doc_id}

    return app


@pytest.fixture
def protected_registry(registry: ConditionRegistry) -> ConditionRegistry:
    registry.register("docs.read", has("docs:read"))
    registry.register("docs.delete", all_of(has("docs:write"), check(is_document_owner)))
    registry.freeze()
    return registry


@pytest_asyncio.fixture
async def client(role_store: InMemoryRoleStore, protected_registry: ConditionRegistry):
    app = build_app(Authorizer(PermissionResolver(role_store), protected_registry))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestProtectedRoutes:

    @pytest.mark.asyncio
    async def test_allowed(self, client: AsyncClient):
        response = await client.get("/documents/42", headers={"X-User-Id": "bob"})

        assert response.status_code == 200
        assert response.json() == {"doc_id": "42", "user_id": "bob"}

    @pytest.mark.asyncio
    async def test_forbidden(self, client: AsyncClient):
        response = await client.get("/documents/42", headers={"X-User-Id": "nobody"})

        assert response.status_code == 403
        assert response.json() == {"detail": FORBIDDEN_MESSAGE}

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client: AsyncClient):
        response = await client.get("/documents/42")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user_is_internal_failure(self, client: AsyncClient):
        response = await client.get("/documents/42", headers={"X-User-Id": "mallory"})

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal authorization failure"}

    @pytest.mark.asyncio
    async def test_predicate_sees_query_params(self, client: AsyncClient):
        allowed = await client.delete("/documents/42", params={"owner": "alice"}, headers={"X-User-Id": "alice"})
        denied = await client.delete("/documents/42", params={"owner": "bob"}, headers={"X-User-Id": "alice"})

        assert allowed.status_code == 200
        assert denied.status_code == 403

    @pytest.mark.asyncio
    async def test_metadata_failure_never_allows(self, role_store: InMemoryRoleStore):
        app = build_app(Authorizer(PermissionResolver(role_store), BrokenConditionSource()))

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/documents/42", headers={"X-User-Id": "alice"})

        assert response.status_code == 500


class TestAuthorizationRoutes:

    @pytest.mark.asyncio
    async def test_check_allowed_and_denied(self, client: AsyncClient):
        allowed = await client.post(
            "/authorization/check", json={"operation_id": "docs.read"}, headers={"X-User-Id": "bob"}
        )
        denied = await client.post(
            "/authorization/check", json={"operation_id": "docs.read"}, headers={"X-User-Id": "nobody"}
        )

        assert allowed.json() == {"operation_id": "docs.read", "allowed": True, "reason": None}
        assert denied.json() == {"operation_id": "docs.read", "allowed": False, "reason": FORBIDDEN_MESSAGE}

    @pytest.mark.asyncio
    async def test_check_passes_context_to_predicates(self, client: AsyncClient):
        response = await client.post(
            "/authorization/check",
            json={"operation_id": "docs.delete", "context": {"owner": "alice"}},
            headers={"X-User-Id": "alice"},
        )

        assert response.json()["allowed"] is True

    @pytest.mark.asyncio
    async def test_own_permissions(self, client: AsyncClient):
        response = await client.get("/authorization/users/alice/permissions", headers={"X-User-Id": "alice"})

        assert response.status_code == 200
        assert response.json() == {"user_id": "alice", "permissions": ["admin", "docs:read", "docs:write"]}

    @pytest.mark.asyncio
    async def test_other_users_permissions_require_grant(self, role_store: InMemoryRoleStore, client: AsyncClient):
        denied = await client.get("/authorization/users/carol/permissions", headers={"X-User-Id": "bob"})

        role_store.add_role("auditor", None, ["authorization:users:read"])
        role_store.add_user("bob", "auditor")
        allowed = await client.get("/authorization/users/carol/permissions", headers={"X-User-Id": "bob"})

        assert denied.status_code == 403
        assert allowed.json() == {"user_id": "carol", "permissions": ["p1", "p2"]}

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.json() == {"status": "healthy"}
