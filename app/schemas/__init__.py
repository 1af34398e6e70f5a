"""Pydantic schemas for request/response validation"""

from app.schemas.auth import (
    Token,
    UserCreate,
    UserUpdate,
    UserResponse,
)
from app.schemas.menu import (
    MenuItemCreate,
    MenuItemUpdate,
    MenuItemResponse,
    MenuItemListResponse,
    DayMenuResponse,
    DayPlanRequest,
    DayLockRequest,
)
from app.schemas.reservation import (
    ReservationCreate,
    ReservationCreated,
    OrderConfirmRequest,
    OrderConfirmed,
    CancelLineResponse,
    OrderCodeRequest,
    CancelOrderResponse,
    OrderLookupResponse,
    RedeemResponse,
    ReservationRows,
    SummaryResponse,
)
from app.schemas.settings import (
    SiteSettings,
    SiteSettingsResponse,
    SiteSettingsUpdate,
)

__all__ = [
    "Token",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "MenuItemCreate",
    "MenuItemUpdate",
    "MenuItemResponse",
    "MenuItemListResponse",
    "DayMenuResponse",
    "DayPlanRequest",
    "DayLockRequest",
    "ReservationCreate",
    "ReservationCreated",
    "OrderConfirmRequest",
    "OrderConfirmed",
    "CancelLineResponse",
    "OrderCodeRequest",
    "CancelOrderResponse",
    "OrderLookupResponse",
    "RedeemResponse",
    "ReservationRows",
    "SummaryResponse",
    "SiteSettings",
    "SiteSettingsResponse",
    "SiteSettingsUpdate",
]
