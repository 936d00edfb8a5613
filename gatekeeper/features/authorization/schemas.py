"""
Pydantic schemas for the authorization routes.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class AuthorizationCheckRequest(BaseModel):
    """Schema for checking whether the current user may invoke an operation."""
    operation_id: str = Field(..., min_length=1, max_length=200, description="Registered operation id")
    context: Optional[Dict[str, Any]] = Field(None, description="Extra data passed to dynamic predicates")


class AuthorizationCheckResponse(BaseModel):
    """Schema for authorization check response."""
    operation_id: str
    allowed: bool
    reason: Optional[str] = None


class UserPermissionsResponse(BaseModel):
    """Schema for the effective permissions of a user."""
    user_id: str
    permissions: List[str] = []


class ErrorResponse(BaseModel):
    detail: str
