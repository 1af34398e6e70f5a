"""Menu management API endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db, transaction
from app.exceptions import NotFoundError
from app.models.menu import MenuItem
from app.models.user import User, UserRole
from app.schemas.menu import (
    DayLockRequest,
    DayMenuResponse,
    DayPlanRequest,
    MenuItemCreate,
    MenuItemListResponse,
    MenuItemResponse,
    MenuItemUpdate,
)
from app.api.auth import get_current_user, require_roles
from app.services import catalog
from app.services.policy import local_now

router = APIRouter()
logger = structlog.get_logger()

require_staff = require_roles(UserRole.MANAGER, UserRole.ADMIN)


@router.get("/items", response_model=MenuItemListResponse)
async def list_menu_items(
    active_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List catalog items by label"""
    items = await catalog.list_items(db, active_only=active_only)
    return MenuItemListResponse(items=items)


@router.post("/items", response_model=MenuItemResponse, status_code=201)
async def create_menu_item(
    item_data: MenuItemCreate,
    current_user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Create a new menu item"""
    async with transaction(db):
        item = MenuItem(**item_data.model_dump())
        db.add(item)
        await db.flush()
    await db.refresh(item)

    logger.info("Menu item created", item_id=item.id, category=item.category.value)
    return item


@router.patch("/items/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: int,
    item_data: MenuItemUpdate,
    current_user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Update a menu item; an empty ``image_url`` clears the image"""
    async with transaction(db):
        item = await catalog.get_item(db, item_id)
        if not item:
            raise NotFoundError("Menu item not found")

        for field, value in item_data.model_dump(exclude_unset=True).items():
            if field == "image_url" and value == "":
                value = None
            elif value is None and field in ("label", "category", "is_active"):
                continue
            setattr(item, field, value)
    await db.refresh(item)

    return item


@router.delete("/items/{item_id}", status_code=204)
async def delete_menu_item(
    item_id: int,
    current_user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Delete a menu item that no daily menu references"""
    async with transaction(db):
        await catalog.delete_item(db, item_id)
    logger.info("Menu item deleted", item_id=item_id)


@router.get("/today", response_model=DayMenuResponse)
async def day_menu(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The menu of a day (today by default) with remaining stock"""
    return await catalog.day_menu(db, day or local_now().date())


@router.post("/day", response_model=DayMenuResponse)
async def plan_day(
    plan: DayPlanRequest,
    current_user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Replace the planned items (and quotas) of a day"""
    async with transaction(db):
        await catalog.plan_day(db, plan.day, [entry.model_dump() for entry in plan.items])
    return await catalog.day_menu(db, plan.day)


@router.post("/day/{day}/lock", response_model=DayMenuResponse)
async def lock_day(
    day: date,
    request: DayLockRequest,
    current_user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db),
):
    """Lock (or unlock) a day against new reservations"""
    async with transaction(db):
        await catalog.set_day_lock(db, day, request.locked)
    return await catalog.day_menu(db, day)
