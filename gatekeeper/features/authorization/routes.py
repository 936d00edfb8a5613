"""
Authorization introspection routes.

Read-only: the permission catalog itself is managed elsewhere.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status

from gatekeeper.features.authorization.decision import Authorizer
from gatekeeper.features.authorization.dependencies import get_authorizer, get_current_user_id
from gatekeeper.features.authorization.schemas import (
    AuthorizationCheckRequest,
    AuthorizationCheckResponse,
    UserPermissionsResponse,
)
from gatekeeper.features.conditions.evaluator import evaluate
from gatekeeper.features.conditions.types import InvocationContext, has
from gatekeeper.utils import get_logger


log = get_logger(__name__)
router = APIRouter()

# Required to list the permissions of users other than the caller
READ_OTHER_USERS_PERMISSIONS = has("authorization:users:read")


@router.post("/check", response_model=AuthorizationCheckResponse)
async def check_authorization(
    check_request: AuthorizationCheckRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    authorizer: Authorizer = Depends(get_authorizer)
):
    """Check if the current user may invoke an operation."""
    context = InvocationContext(
        operation_id=check_request.operation_id,
        user_id=user_id,
        arguments=dict(check_request.context or {}),
        extras={"request": request},
    )

    allowed = await authorizer.is_allowed(check_request.operation_id, user_id, context)
    log.debug(f"Check {check_request.operation_id!r} for user {user_id}: allowed={allowed}")

    return AuthorizationCheckResponse(
        operation_id=check_request.operation_id,
        allowed=allowed,
        reason=None if allowed else authorizer.forbidden_message
    )


@router.get("/users/{user_id}/permissions", response_model=UserPermissionsResponse)
async def get_user_permissions(
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    authorizer: Authorizer = Depends(get_authorizer)
):
    """Get the effective permissions of a user."""
    # Can only view own permissions unless granted the catalog-wide read
    if user_id != current_user_id:
        caller_permissions = await authorizer.get_user_permissions(current_user_id)
        if not await evaluate(READ_OTHER_USERS_PERMISSIONS, caller_permissions):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to view other users' permissions"
            )

    permissions = await authorizer.get_user_permissions(user_id)

    return UserPermissionsResponse(user_id=user_id, permissions=sorted(permissions))
