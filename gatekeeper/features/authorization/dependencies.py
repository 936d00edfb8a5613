"""
FastAPI dependencies for protecting routes.

Authentication is not done here. An upstream middleware is expected to
store the authenticated user id on `request.state.user_id`.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, Request, status

from gatekeeper.features.authorization.decision import Authorizer
from gatekeeper.features.conditions.types import InvocationContext


def get_authorizer(request: Request) -> Authorizer:
    """Get the authorizer installed on the application by `create_app`."""
    return request.app.state.authorizer


def get_current_user_id(request: Request) -> str:
    """
    Get the already-authenticated user id of the request.

    Raises:
        HTTPException: 401 if no identity was established
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def require_authorization(operation_id: str):
    """
    FastAPI dependency to require authorization for an operation.

    Usage:
        @router.post("/reports/{report_id}/export")
        async def export_report(
            report_id: str,
            user_id: str = Depends(require_authorization("reports.export"))
        ):
            # Authorized
            pass

    Returns:
        Dependency function that returns the current user id if authorized

    Raises:
        Forbidden: if the operation's condition is false (mapped to 403)
    """
    async def authorization_dependency(
        request: Request,
        user_id: Annotated[str, Depends(get_current_user_id)],
        authorizer: Annotated[Authorizer, Depends(get_authorizer)],
    ) -> str:
        context = InvocationContext(
            operation_id=operation_id,
            user_id=user_id,
            arguments={**request.query_params, **request.path_params},
            extras={"request": request},
        )
        await authorizer.authorize(operation_id, user_id, context)
        return user_id

    return authorization_dependency
