"""Menu schemas"""

from datetime import date, datetime
from typing import Optional, List
from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.models.menu import Category


def _category(value):
    if value is None:
        return None
    category = Category.parse(value)
    if category is None:
        raise ValueError("category must be one of: starter/entrée, main/plat, dessert, drink/boisson")
    return category


def _image_url(value):
    if value is None or value == "":
        return value
    value = value.strip().replace("\\", "/")
    if not (value.lower().startswith(("http://", "https://")) or value.startswith("/uploads/")):
        raise ValueError("image_url must be an http(s) URL or an /uploads/... path")
    return value


class MenuItemCreate(BaseModel):
    """Create menu item request"""
    label: str = Field(..., min_length=1, validation_alias=AliasChoices("label", "libelle"))
    description: Optional[str] = None
    category: Category = Field(Category.MAIN, validation_alias=AliasChoices("category", "type"))
    is_active: bool = True
    allergens: List[str] = []
    calories: Optional[int] = None
    image_url: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def check_category(cls, value):
        return _category(value)

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, value):
        return _image_url(value)


class MenuItemUpdate(BaseModel):
    """Update menu item request; an empty image_url clears the image"""
    label: Optional[str] = Field(None, min_length=1, validation_alias=AliasChoices("label", "libelle"))
    description: Optional[str] = None
    category: Optional[Category] = Field(None, validation_alias=AliasChoices("category", "type"))
    is_active: Optional[bool] = None
    allergens: Optional[List[str]] = None
    calories: Optional[int] = None
    image_url: Optional[str] = None

    @field_validator("category", mode="before")
    @classmethod
    def check_category(cls, value):
        return _category(value)

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, value):
        return _image_url(value)


class MenuItemResponse(BaseModel):
    """Menu item response"""
    id: int
    label: str
    description: Optional[str]
    category: Category
    is_active: bool
    allergens: Optional[List[str]]
    calories: Optional[int]
    image_url: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MenuItemListResponse(BaseModel):
    """Catalog listing"""
    items: List[MenuItemResponse]


class DayMenuItem(BaseModel):
    """Planned item as shown to employees"""
    id: int
    label: str
    description: Optional[str]
    category: Category
    image_url: Optional[str]
    quota: Optional[int]
    remaining: Optional[int]


class DayMenuResponse(BaseModel):
    """Menu of one day"""
    date: date
    locked: bool
    items: List[DayMenuItem]


class PlannedItem(BaseModel):
    """One item of a day plan"""
    menu_item_id: int
    quota: Optional[int] = Field(None, ge=0)


class DayPlanRequest(BaseModel):
    """Replace the planned items of a day"""
    day: date = Field(..., validation_alias=AliasChoices("date", "date_jour", "day"))
    items: List[PlannedItem]


class DayLockRequest(BaseModel):
    """Lock or unlock a day"""
    locked: bool = True
