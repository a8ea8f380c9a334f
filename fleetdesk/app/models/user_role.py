"""
User role assignment model.

A user may hold several role labels; routing picks the primary one
(see fleetdesk.app.core.roles.primary_role).
"""

from sqlalchemy import Column, Integer, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from fleetdesk.app.db.session import Base
from fleetdesk.app.models.enums import AppRole


class UserRoleAssignment(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(AppRole, values_callable=lambda e: [m.value for m in e]), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    user = relationship("User", back_populates="roles")

    def __repr__(self):
        return f"<UserRoleAssignment(user_id={self.user_id}, role='{self.role.value}')>"
