"""Read paths over reservation lines: personal history, day lists, kitchen summary, CSV"""

import csv
import io
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidInputError
from app.models.menu import Category, MenuItem
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import User
from app.services.reservations import Actor, require_staff

CATEGORY_ORDER = [Category.STARTER, Category.MAIN, Category.DESSERT, Category.DRINK]

MY_VIEWS = ("list", "matrix_day")
DAY_VIEWS = ("list", "matrix")


def _empty_cells() -> Dict[str, Any]:
    return {category.value: None for category in CATEGORY_ORDER}


def parse_status_filter(status: Optional[str]) -> Optional[ReservationStatus]:
    """``None`` means every status"""
    value = (status or "confirmed").strip().lower()
    if value == "all":
        return None
    try:
        return ReservationStatus(value)
    except ValueError:
        raise InvalidInputError(f"Unknown status filter: {status}")


def _check_view(view: Optional[str], allowed) -> str:
    value = (view or "list").strip().lower()
    if value not in allowed:
        raise InvalidInputError(f"Unknown view: {view} (expected one of {', '.join(allowed)})")
    return value


async def my_reservations(db: AsyncSession, actor: Actor, view: str = "list") -> List[Dict[str, Any]]:
    """The caller's lines, oldest day first"""
    view = _check_view(view, MY_VIEWS)
    result = await db.execute(
        select(
            Reservation.id,
            Reservation.day,
            Reservation.status,
            Reservation.category,
            Reservation.pickup_code,
            Reservation.order_code,
            MenuItem.label,
        )
        .join(MenuItem, MenuItem.id == Reservation.menu_item_id)
        .where(Reservation.user_id == actor.user_id)
        .order_by(Reservation.day, Reservation.created_at, Reservation.id)
    )
    rows = [
        {
            "id": row.id,
            "date": row.day,
            "status": row.status.value,
            "category": row.category.value,
            "label": row.label,
            "pickup_code": row.pickup_code,
            "order_code": row.order_code,
        }
        for row in result.all()
    ]
    if view == "list":
        return rows
    return pivot_by_day(rows)


def pivot_by_day(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One row per date with a cell per category; later lines win a cell"""
    by_day: Dict[date, Dict[str, Any]] = {}
    for row in rows:
        entry = by_day.get(row["date"])
        if entry is None:
            entry = {"date": row["date"], "order_code": row["order_code"], **_empty_cells()}
            by_day[row["date"]] = entry
        entry[row["category"]] = {
            "id": row["id"],
            "label": row["label"],
            "status": row["status"],
            "pickup_code": row["pickup_code"],
        }
        if not entry["order_code"] and row["order_code"]:
            entry["order_code"] = row["order_code"]
    return list(by_day.values())


async def _day_rows(db: AsyncSession, day: date, status: Optional[ReservationStatus]) -> List[Dict[str, Any]]:
    query = (
        select(
            Reservation.id,
            Reservation.user_id,
            Reservation.category,
            Reservation.status,
            Reservation.created_at,
            User.matricule,
            User.full_name,
            MenuItem.label,
        )
        .join(User, User.id == Reservation.user_id)
        .join(MenuItem, MenuItem.id == Reservation.menu_item_id)
        .where(Reservation.day == day)
        .order_by(Reservation.created_at, Reservation.id)
    )
    if status is not None:
        query = query.where(Reservation.status == status)
    result = await db.execute(query)
    return [
        {
            "id": row.id,
            "user_id": row.user_id,
            "matricule": row.matricule,
            "full_name": row.full_name or "",
            "label": row.label,
            "category": row.category.value,
            "status": row.status.value,
            "created_at": row.created_at,
        }
        for row in result.all()
    ]


async def day_reservations(
    db: AsyncSession,
    actor: Actor,
    day: date,
    status: Optional[str] = "confirmed",
    view: str = "list",
) -> List[Dict[str, Any]]:
    """All lines of a day for the kitchen, flat or one row per person"""
    require_staff(actor)
    view = _check_view(view, DAY_VIEWS)
    rows = await _day_rows(db, day, parse_status_filter(status))
    if view == "list":
        return rows
    return pivot_by_person(rows)


def pivot_by_person(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One row per user with the item label of each category"""
    by_user: Dict[int, Dict[str, Any]] = {}
    for row in rows:
        entry = by_user.get(row["user_id"])
        if entry is None:
            entry = {
                "user_id": row["user_id"],
                "matricule": row["matricule"],
                "full_name": row["full_name"],
                **_empty_cells(),
            }
            by_user[row["user_id"]] = entry
        entry[row["category"]] = row["label"]
    return list(by_user.values())


async def summary(db: AsyncSession, actor: Actor, day: date) -> List[Dict[str, Any]]:
    """Confirmed counts per (category, item label) for kitchen preparation"""
    require_staff(actor)
    result = await db.execute(
        select(Reservation.category, MenuItem.label, func.count(Reservation.id))
        .join(MenuItem, MenuItem.id == Reservation.menu_item_id)
        .where(Reservation.day == day, Reservation.status == ReservationStatus.CONFIRMED)
        .group_by(Reservation.category, MenuItem.label)
    )
    items = [
        {"category": category.value, "label": label, "count": int(count)}
        for category, label, count in result.all()
    ]
    items.sort(key=lambda r: (CATEGORY_ORDER.index(Category(r["category"])), r["label"]))
    return items


async def export_csv(db: AsyncSession, actor: Actor, day: date, status: Optional[str] = "confirmed") -> str:
    """A day's lines as CSV text"""
    require_staff(actor)
    rows = await _day_rows(db, day, parse_status_filter(status))

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["id", "matricule", "full_name", "item", "category", "status", "created_at"])
    for row in rows:
        writer.writerow([
            row["id"],
            row["matricule"],
            row["full_name"],
            row["label"],
            row["category"],
            row["status"],
            row["created_at"].isoformat() if row["created_at"] else "",
        ])
    return buffer.getvalue()
