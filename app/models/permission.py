# app/models/permission.py
"""
Permission catalog and explicit per-user grants.

Role defaults are not stored here; they live in code (see
app.services.seed_service.ROLE_PERMISSIONS). A UserPermission row only
ever adds to what the user's role already grants.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditedEntity, Base, utcnow
from app.models.user import User


class Permission(AuditedEntity):
    """
    Canonical list of permission codes ("category.action").
    Seeded once at startup when the table is empty.
    """

    __tablename__ = "permissions"

    # Permission Information
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g., "customers", "requests"


class UserPermission(Base):
    """Explicit grant of one catalog permission to one user."""

    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permissions_user_permission"),
    )

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Grant metadata
    granted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    granted_by: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        doc="User id of the grantor (back-reference only).",
    )

    # Relationships
    user: Mapped[User] = relationship(User, back_populates="permission_grants", foreign_keys=[user_id])
    permission: Mapped[Permission] = relationship(Permission, lazy="joined")
