"""Tests for listings, pivots, kitchen summary and CSV export"""

import csv
from datetime import date, datetime
import io

import pytest

from app.exceptions import ForbiddenError, InvalidInputError
from app.models.menu import Category
from app.services import reporting, reservations

DAY = date(2024, 6, 10)
EARLY = datetime(2024, 6, 10, 9, 0)


@pytest.fixture
async def booked_day(test_db, actors, menu_items, plan):
    """Employee orders starter+main, colleague orders main+drink and cancels the drink"""
    await plan(DAY)
    await reservations.confirm_order(
        test_db,
        actors["employee"],
        DAY,
        {Category.STARTER: menu_items["salad"], Category.MAIN: menu_items["fish"]},
        now=EARLY,
    )
    order = await reservations.confirm_order(
        test_db,
        actors["colleague"],
        DAY,
        {Category.MAIN: menu_items["fish"], Category.DRINK: menu_items["juice"]},
        now=EARLY,
    )
    drink = next(line for line in order.lines if line.category == Category.DRINK)
    await reservations.cancel_line(test_db, actors["colleague"], drink.reservation_id, now=EARLY)


@pytest.mark.asyncio
async def test_my_reservations_list(test_db, actors, booked_day):
    rows = await reporting.my_reservations(test_db, actors["employee"], "list")

    assert len(rows) == 2
    assert {row["category"] for row in rows} == {"starter", "main"}
    assert all(row["date"] == DAY for row in rows)
    assert all(row["status"] == "confirmed" for row in rows)
    assert len({row["order_code"] for row in rows}) == 1


@pytest.mark.asyncio
async def test_my_reservations_matrix_day(test_db, actors, booked_day):
    rows = await reporting.my_reservations(test_db, actors["colleague"], "matrix_day")

    assert len(rows) == 1
    row = rows[0]
    assert row["date"] == DAY
    assert row["starter"] is None
    assert row["dessert"] is None
    assert row["main"]["label"] == "Poisson grillé"
    assert row["drink"]["status"] == "cancelled"
    assert row["order_code"]


@pytest.mark.asyncio
async def test_unknown_view_rejected(test_db, actors, booked_day):
    with pytest.raises(InvalidInputError):
        await reporting.my_reservations(test_db, actors["employee"], "matrix")


@pytest.mark.asyncio
async def test_day_reservations_filters_by_status(test_db, actors, booked_day):
    confirmed = await reporting.day_reservations(test_db, actors["manager"], DAY, "confirmed", "list")
    everything = await reporting.day_reservations(test_db, actors["manager"], DAY, "all", "list")
    cancelled = await reporting.day_reservations(test_db, actors["manager"], DAY, "cancelled", "list")

    assert len(confirmed) == 3
    assert len(everything) == 4
    assert [row["label"] for row in cancelled] == ["Jus d'orange"]

    with pytest.raises(InvalidInputError):
        await reporting.day_reservations(test_db, actors["manager"], DAY, "eaten", "list")


@pytest.mark.asyncio
async def test_day_matrix_one_row_per_person(test_db, actors, booked_day):
    rows = await reporting.day_reservations(test_db, actors["manager"], DAY, "confirmed", "matrix")

    by_matricule = {row["matricule"]: row for row in rows}
    assert set(by_matricule) == {"E12345", "E67890"}
    assert by_matricule["E12345"]["starter"] == "Salade marocaine"
    assert by_matricule["E12345"]["main"] == "Poisson grillé"
    assert by_matricule["E67890"]["drink"] is None


@pytest.mark.asyncio
async def test_day_reservations_need_staff(test_db, actors, booked_day):
    with pytest.raises(ForbiddenError):
        await reporting.day_reservations(test_db, actors["employee"], DAY, "confirmed", "list")
    with pytest.raises(ForbiddenError):
        await reporting.summary(test_db, actors["employee"], DAY)


@pytest.mark.asyncio
async def test_summary_counts_confirmed_only(test_db, actors, booked_day):
    items = await reporting.summary(test_db, actors["manager"], DAY)

    assert items == [
        {"category": "starter", "label": "Salade marocaine", "count": 1},
        {"category": "main", "label": "Poisson grillé", "count": 2},
    ]


@pytest.mark.asyncio
async def test_export_csv(test_db, actors, booked_day):
    content = await reporting.export_csv(test_db, actors["admin"], DAY, "all")

    rows = list(csv.reader(io.StringIO(content)))
    assert rows[0] == ["id", "matricule", "full_name", "item", "category", "status", "created_at"]
    assert len(rows) == 5
    assert {row[5] for row in rows[1:]} == {"confirmed", "cancelled"}


def test_pivot_by_day_later_line_wins():
    rows = [
        {"id": 1, "date": DAY, "status": "cancelled", "category": "main", "label": "A", "pickup_code": "P1", "order_code": "O1"},
        {"id": 2, "date": DAY, "status": "confirmed", "category": "main", "label": "B", "pickup_code": "P2", "order_code": "O2"},
    ]

    pivot = reporting.pivot_by_day(rows)

    assert len(pivot) == 1
    assert pivot[0]["main"]["label"] == "B"
    assert pivot[0]["order_code"] == "O1"
