"""
User, Role and Permission models backing the default role store.

This module implements the storage shape read by the permission resolver:
- Users with directly assigned roles (user_roles)
- Roles with an optional parent role (single inheritance)
- Roles with directly assigned permissions (role_permissions)

Nothing here enforces an acyclic role hierarchy. The resolver tolerates
cycles at read time.
"""
from datetime import datetime
from sqlalchemy import String, ForeignKey, Table, Column, Text, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gatekeeper.core.database.base import ULID_LENGTH, Base, RecordMixin, ulid_reference


# ============================================================================
# Association Tables for Many-to-Many Relationships
# ============================================================================

# User-Role relationship (direct, non-transitive)
user_roles = Table(
    "user_roles",
    Base.metadata,
    ulid_reference("user_id", "users.id", primary_key=True),
    ulid_reference("role_id", "roles.id", primary_key=True),
    Column("assigned_at", DateTime(timezone=True), nullable=False, default=datetime.now),
)

# Role-Permission relationship (direct, non-transitive)
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    ulid_reference("role_id", "roles.id", primary_key=True),
    ulid_reference("permission_id", "permissions.id", primary_key=True),
)


# ============================================================================
# Core Models
# ============================================================================

class User(Base, RecordMixin):
    """
    Identity known to the role store.

    Authentication happens elsewhere; this row only anchors role assignments
    and lets the store tell an unknown user apart from one with no roles.
    """
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary=user_roles,
        back_populates="users",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"


class Permission(Base, RecordMixin):
    """
    Atomic capability identified by a unique, case-sensitive key.

    Examples: "claims:read", "reports:export", "admin"
    """
    __tablename__ = "permissions"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary=role_permissions,
        back_populates="permissions",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, key={self.key!r})>"


class Role(Base, RecordMixin):
    """
    Role node in the inheritance hierarchy.

    A role inherits every permission of its parent, transitively.
    """
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    parent_id: Mapped[str | None] = mapped_column(
        String(ULID_LENGTH),
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    permissions: Mapped[list["Permission"]] = relationship(
        "Permission",
        secondary=role_permissions,
        back_populates="roles",
        lazy="selectin"
    )

    users: Mapped[list["User"]] = relationship(
        "User",
        secondary=user_roles,
        back_populates="roles",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, parent_id={self.parent_id})>"
