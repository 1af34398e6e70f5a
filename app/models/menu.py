"""Menu catalog models"""

import enum
import unicodedata
from datetime import datetime
from typing import Optional
from sqlalchemy import (
    Column, String, Integer, Boolean, Date, DateTime, Enum, ForeignKey, JSON, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base


class Category(str, enum.Enum):
    """Fixed meal categories; one reservation per category per day"""
    STARTER = "starter"
    MAIN = "main"
    DESSERT = "dessert"
    DRINK = "drink"

    @classmethod
    def parse(cls, value) -> Optional["Category"]:
        """Map an incoming spelling to the canonical category, or None"""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        key = unicodedata.normalize("NFC", str(value)).strip().lower()
        if key.endswith("_id"):
            key = key[:-3]
        return CATEGORY_ALIASES.get(key)


# Accepted spellings at the API boundary. Only canonical values are stored.
CATEGORY_ALIASES = {
    "starter": Category.STARTER,
    "entrée": Category.STARTER,
    "entree": Category.STARTER,
    "main": Category.MAIN,
    "plat": Category.MAIN,
    "dessert": Category.DESSERT,
    "drink": Category.DRINK,
    "boisson": Category.DRINK,
}


# Shared by menu_items.category and reservations.category
category_type = Enum(Category, name="menu_category", values_callable=lambda e: [m.value for m in e])


class MenuItem(Base):
    """Catalog dishes and drinks"""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    label = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(category_type, nullable=False, default=Category.MAIN)
    allergens = Column(JSON, default=list)  # ["gluten", "nuts", ...]
    calories = Column(Integer)
    is_active = Column(Boolean, default=True, nullable=False)
    image_url = Column(String(500))  # http(s):// URL or /uploads/... path
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    planned = relationship("DailyMenuItem", back_populates="menu_item")


class DailyMenu(Base):
    """Menu of one calendar day"""
    __tablename__ = "daily_menus"

    id = Column(Integer, primary_key=True, autoincrement=True)
    day = Column(Date, unique=True, nullable=False)
    locked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    items = relationship("DailyMenuItem", back_populates="daily_menu", cascade="all, delete-orphan")


class DailyMenuItem(Base):
    """An item planned on a daily menu, optionally bounded by a stock quota"""
    __tablename__ = "daily_menu_items"
    __table_args__ = (
        UniqueConstraint("daily_menu_id", "menu_item_id", name="uq_daily_menu_item"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    daily_menu_id = Column(Integer, ForeignKey("daily_menus.id"), nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    stock_quota = Column(Integer)  # None = unlimited
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    daily_menu = relationship("DailyMenu", back_populates="items")
    menu_item = relationship("MenuItem", back_populates="planned")
