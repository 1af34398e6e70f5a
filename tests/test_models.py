"""Tests for category parsing, reservation state and time rules"""

from datetime import date, datetime

import pytest

from app.models.menu import Category
from app.models.reservation import InvalidTransition, Reservation, ReservationStatus
from app.services.policy import is_before, is_hhmm


@pytest.mark.parametrize("raw,expected", [
    ("entrée", Category.STARTER),
    ("Entree", Category.STARTER),
    ("entree_id", Category.STARTER),
    ("PLAT", Category.MAIN),
    ("main", Category.MAIN),
    ("dessert_id", Category.DESSERT),
    ("boisson", Category.DRINK),
    (" drink ", Category.DRINK),
    ("soup", None),
    (None, None),
])
def test_category_parse(raw, expected):
    assert Category.parse(raw) is expected


def test_category_parse_decomposed_accent():
    # "entrée" typed as e + combining acute accent
    assert Category.parse("entre\u0301e") is Category.STARTER


def test_confirmed_line_can_be_cancelled_once():
    line = Reservation(status=ReservationStatus.CONFIRMED)

    line.cancel()

    assert line.status == ReservationStatus.CANCELLED
    with pytest.raises(InvalidTransition):
        line.cancel()
    with pytest.raises(InvalidTransition):
        line.mark_picked(datetime(2024, 6, 10, 12, 0))


def test_picked_line_is_terminal():
    line = Reservation(status=ReservationStatus.CONFIRMED)
    served_at = datetime(2024, 6, 10, 12, 0)

    line.mark_picked(served_at)

    assert line.status == ReservationStatus.PICKED
    assert line.picked_at == served_at
    with pytest.raises(InvalidTransition):
        line.cancel()
    with pytest.raises(InvalidTransition):
        line.mark_picked(served_at)


def test_is_before():
    day = date(2024, 6, 10)

    assert is_before(day, "10:30", datetime(2024, 6, 10, 10, 30))
    assert not is_before(day, "10:30", datetime(2024, 6, 10, 10, 30, 1))
    assert is_before(day, "10:30", datetime(2024, 6, 9, 23, 0))
    assert not is_before(day, "10:30", datetime(2024, 6, 11, 8, 0))


@pytest.mark.parametrize("value,valid", [
    ("00:00", True),
    ("23:59", True),
    ("10:30", True),
    ("24:00", False),
    ("9:30", False),
    ("9h30", False),
    ("", False),
    (None, False),
])
def test_is_hhmm(value, valid):
    assert is_hhmm(value) is valid
