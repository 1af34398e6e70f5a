"""Menu catalog: items, daily menus and planned relations"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.models.menu import DailyMenu, DailyMenuItem, MenuItem
from app.models.reservation import Reservation, ReservationStatus

logger = structlog.get_logger()


async def get_item(db: AsyncSession, item_id: int) -> Optional[MenuItem]:
    return await db.get(MenuItem, item_id)


async def get_items(db: AsyncSession, item_ids: Iterable[int]) -> Dict[int, MenuItem]:
    ids = list(set(item_ids))
    if not ids:
        return {}
    result = await db.execute(select(MenuItem).where(MenuItem.id.in_(ids)))
    return {item.id: item for item in result.scalars().all()}


async def list_items(db: AsyncSession, active_only: bool = False) -> List[MenuItem]:
    query = select(MenuItem)
    if active_only:
        query = query.where(MenuItem.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(MenuItem.label, MenuItem.id))
    return list(result.scalars().all())


async def delete_item(db: AsyncSession, item_id: int) -> None:
    """Delete an item that no daily menu references. Caller owns the transaction."""
    item = await get_item(db, item_id)
    if item is None:
        raise NotFoundError("Menu item not found")

    planned = await db.execute(
        select(func.count(DailyMenuItem.id)).where(DailyMenuItem.menu_item_id == item_id)
    )
    reserved = await db.execute(
        select(func.count(Reservation.id)).where(Reservation.menu_item_id == item_id)
    )
    if planned.scalar() or reserved.scalar():
        raise ConflictError("Menu item is used by daily menus or reservations; remove those references first")

    await db.delete(item)


async def get_daily_menu(db: AsyncSession, day: date) -> Optional[DailyMenu]:
    result = await db.execute(select(DailyMenu).where(DailyMenu.day == day))
    return result.scalar_one_or_none()


async def get_or_create_daily_menu(db: AsyncSession, day: date) -> DailyMenu:
    """Return the day's menu, creating an empty unlocked one on first use"""
    daily = await get_daily_menu(db, day)
    if daily is not None:
        return daily

    try:
        async with db.begin_nested():
            daily = DailyMenu(day=day, locked=False)
            db.add(daily)
    except IntegrityError:
        # Another request created it first; only the savepoint is rolled back
        daily = await get_daily_menu(db, day)
        if daily is None:
            raise
    return daily


async def get_planned(
    db: AsyncSession,
    daily_menu_id: int,
    menu_item_id: int,
    lock: bool = False,
) -> Optional[DailyMenuItem]:
    """
    Fetch the planned relation for an item on a daily menu.

    With ``lock`` the row is selected FOR UPDATE and held until the enclosing
    transaction ends, serializing quota checks for that item and day.
    """
    query = select(DailyMenuItem).where(
        DailyMenuItem.daily_menu_id == daily_menu_id,
        DailyMenuItem.menu_item_id == menu_item_id,
    )
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def count_confirmed(db: AsyncSession, day: date, menu_item_id: int) -> int:
    result = await db.execute(
        select(func.count(Reservation.id)).where(
            Reservation.day == day,
            Reservation.menu_item_id == menu_item_id,
            Reservation.status == ReservationStatus.CONFIRMED,
        )
    )
    return result.scalar() or 0


async def day_menu(db: AsyncSession, day: date) -> Dict[str, Any]:
    """The day's planned items with remaining quota (None when unlimited)"""
    daily = await get_or_create_daily_menu(db, day)
    await db.commit()

    planned = await db.execute(
        select(DailyMenuItem, MenuItem)
        .join(MenuItem, MenuItem.id == DailyMenuItem.menu_item_id)
        .where(DailyMenuItem.daily_menu_id == daily.id)
        .order_by(DailyMenuItem.id)
    )
    counts = await db.execute(
        select(Reservation.menu_item_id, func.count(Reservation.id))
        .where(Reservation.day == day, Reservation.status == ReservationStatus.CONFIRMED)
        .group_by(Reservation.menu_item_id)
    )
    used = dict(counts.all())

    items = []
    for dmi, item in planned.all():
        remaining = None
        if dmi.stock_quota is not None:
            remaining = max(dmi.stock_quota - used.get(item.id, 0), 0)
        items.append({
            "id": item.id,
            "label": item.label,
            "description": item.description,
            "category": item.category,
            "image_url": item.image_url.replace("\\", "/") if item.image_url else None,
            "quota": dmi.stock_quota,
            "remaining": remaining,
        })

    return {"date": day, "locked": daily.locked, "items": items}


async def plan_day(db: AsyncSession, day: date, entries: List[Dict[str, Any]]) -> DailyMenu:
    """
    Replace the day's planned items with ``entries``
    (``{"menu_item_id": int, "quota": Optional[int]}``).

    Existing reservations are left alone. The caller owns the transaction.
    """
    seen = set()
    for entry in entries:
        item_id = entry["menu_item_id"]
        if item_id in seen:
            raise InvalidInputError(f"Item {item_id} is planned twice")
        seen.add(item_id)
        quota = entry.get("quota")
        if quota is not None and quota < 0:
            raise InvalidInputError("quota must be zero or positive")

    known = await get_items(db, seen)
    missing = sorted(seen - set(known))
    if missing:
        raise NotFoundError(f"Unknown menu items: {missing}")

    daily = await get_or_create_daily_menu(db, day)
    await db.execute(delete(DailyMenuItem).where(DailyMenuItem.daily_menu_id == daily.id))
    for entry in entries:
        db.add(DailyMenuItem(
            daily_menu_id=daily.id,
            menu_item_id=entry["menu_item_id"],
            stock_quota=entry.get("quota"),
        ))
    await db.flush()

    logger.info("Day planned", day=str(day), item_count=len(entries))
    return daily


async def set_day_lock(db: AsyncSession, day: date, locked: bool) -> DailyMenu:
    """Lock or unlock a day. The caller owns the transaction."""
    daily = await get_or_create_daily_menu(db, day)
    daily.locked = locked
    logger.info("Day lock changed", day=str(day), locked=locked)
    return daily
