"""
User model. One table holds every role; the role decides what a user may do.
"""

import enum

from sqlalchemy import Column, String, Boolean, CheckConstraint

from ticketing.db.base import AddressMixin, Base, TimestampMixin, UUIDPrimaryKeyMixin


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    ORGANIZER = "organizer"
    STUDENT = "student"


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin, AddressMixin):
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value)
    is_active = Column(Boolean, default=True, nullable=False)
    # Pending password reset token, empty when none was requested
    reset_token = Column(String(16), nullable=False, default="")

    __table_args__ = (
        CheckConstraint(
            "role IN ('super_admin', 'admin', 'organizer', 'student')",
            name="check_user_role",
        ),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
