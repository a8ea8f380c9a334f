"""
User (identity) database model.

Holds sign-in credentials only. Display data lives on Profile and
role labels on UserRoleAssignment.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetdesk.app.db.session import Base


class User(Base):
    """Identity used for authentication."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Accounts provisioned by an admin are confirmed on creation
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    profile = relationship("Profile", back_populates="user", uselist=False, lazy="selectin")
    roles = relationship(
        "UserRoleAssignment",
        back_populates="user",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def role_set(self) -> set:
        return {assignment.role for assignment in self.roles}

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
