"""Reservation schemas"""

from datetime import date, datetime
from typing import Any, Dict, Optional, List
from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.models.menu import Category
from app.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    """Reserve a single item"""
    day: date = Field(..., validation_alias=AliasChoices("date", "date_jour", "day"))
    menu_item_id: int


class ReservationCreated(BaseModel):
    """Single reservation response"""
    ok: bool = True
    reservation_id: int
    pickup_code: str
    order_code: str

    class Config:
        from_attributes = True


class OrderConfirmRequest(BaseModel):
    """
    Confirm a cart for one day.

    ``selections`` maps a category (``entree``/``plat``/``dessert``/``boisson``,
    their ``_id`` variants, or the canonical names) to a menu item id.
    """
    day: date = Field(..., validation_alias=AliasChoices("date", "date_jour", "day"))
    selections: Dict[str, Optional[int]] = Field(
        ..., validation_alias=AliasChoices("selections", "selection")
    )

    @field_validator("selections")
    @classmethod
    def known_categories(cls, value):
        for key in value:
            if Category.parse(key) is None:
                raise ValueError(f"unknown category: {key}")
        return value


class OrderLineResponse(BaseModel):
    """Created order line"""
    reservation_id: int
    category: Category
    pickup_code: str
    menu_item_id: int
    label: str

    class Config:
        from_attributes = True


class OrderConfirmed(BaseModel):
    """Order confirmation response"""
    ok: bool = True
    order_code: str
    day: date = Field(..., alias="date")
    lines: List[OrderLineResponse]

    class Config:
        from_attributes = True
        populate_by_name = True


class CancelLineResponse(BaseModel):
    """Line cancellation outcome; ``cancelled`` is False when nothing changed"""
    ok: bool = True
    reservation_id: int
    status: ReservationStatus
    cancelled: bool

    class Config:
        from_attributes = True


class OrderCodeRequest(BaseModel):
    """Body carrying an order code"""
    order_code: str = Field(..., min_length=1)


class CancelDiagnosticResponse(BaseModel):
    total: int
    confirmed: int
    already_cancelled: int
    already_picked: int

    class Config:
        from_attributes = True


class CancelOrderResponse(BaseModel):
    """Order cancellation outcome"""
    ok: bool = True
    order_code: str
    day: date = Field(..., alias="date")
    cancelled: int
    diagnostic: CancelDiagnosticResponse

    class Config:
        from_attributes = True
        populate_by_name = True


class OrderOwnerResponse(BaseModel):
    user_id: int
    matricule: str
    full_name: Optional[str]

    class Config:
        from_attributes = True


class LookupLineResponse(BaseModel):
    id: int
    category: Category
    label: str
    status: ReservationStatus
    pickup_code: str
    picked_at: Optional[datetime]

    class Config:
        from_attributes = True


class OrderLookupResponse(BaseModel):
    """Order as shown at the pickup counter"""
    order_code: str
    day: date = Field(..., alias="date")
    owner: OrderOwnerResponse
    lines: List[LookupLineResponse]

    class Config:
        from_attributes = True
        populate_by_name = True


class RedeemResponse(BaseModel):
    """Redemption counts for one scan"""
    ok: bool = True
    order_code: str
    day: date = Field(..., alias="date")
    owner: OrderOwnerResponse
    updated: int
    already: int
    invalid: int

    class Config:
        from_attributes = True
        populate_by_name = True


class ReservationRows(BaseModel):
    """Listing or pivot rows"""
    items: List[Dict[str, Any]]


class SummaryRow(BaseModel):
    category: Category
    label: str
    count: int


class SummaryResponse(BaseModel):
    """Confirmed counts per category and item"""
    date: date
    items: List[SummaryRow]
