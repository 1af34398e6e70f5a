"""Database models"""

from app.models.user import User, UserRole
from app.models.menu import Category, MenuItem, DailyMenu, DailyMenuItem
from app.models.reservation import Reservation, ReservationStatus
from app.models.setting import Setting

__all__ = [
    "User",
    "UserRole",
    "Category",
    "MenuItem",
    "DailyMenu",
    "DailyMenuItem",
    "Reservation",
    "ReservationStatus",
    "Setting",
]
