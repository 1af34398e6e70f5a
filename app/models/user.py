"""User model for canteen authentication"""

from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Enum, Integer
from sqlalchemy.orm import relationship
import enum

from app.database import Base


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


# Roles allowed to place personal reservations. Managers plan and serve
# meals but do not reserve for themselves.
RESERVING_ROLES = frozenset({UserRole.USER, UserRole.ADMIN})

# Roles allowed to plan menus, read production lists and redeem orders.
STAFF_ROLES = frozenset({UserRole.MANAGER, UserRole.ADMIN})


class User(Base):
    """Canteen users, identified by their employee number"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Authentication
    matricule = Column(String(64), unique=True, nullable=False)
    hashed_password = Column(String(255))

    # Profile
    full_name = Column(String(255))
    email = Column(String(255))

    # Role
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
    )

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    reservations = relationship("Reservation", back_populates="user")
