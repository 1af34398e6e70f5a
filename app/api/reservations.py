"""Reservation API endpoints"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.reservation import (
    CancelLineResponse,
    CancelOrderResponse,
    OrderCodeRequest,
    OrderConfirmRequest,
    OrderConfirmed,
    OrderLookupResponse,
    RedeemResponse,
    ReservationCreate,
    ReservationCreated,
    ReservationRows,
    SummaryResponse,
)
from app.api.auth import get_actor
from app.services import reporting, reservations
from app.services.policy import local_now
from app.services.reservations import Actor

router = APIRouter()


@router.post("", response_model=ReservationCreated)
async def create_reservation(
    request: ReservationCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Reserve a single item for a day"""
    result = await reservations.reserve(db, actor, request.day, request.menu_item_id)
    return ReservationCreated.model_validate(result)


@router.post("/confirm", response_model=OrderConfirmed)
async def confirm_order(
    request: OrderConfirmRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Confirm a cart of up to one item per category"""
    selection = reservations.parse_selection(request.selections)
    result = await reservations.confirm_order(db, actor, request.day, selection)
    return OrderConfirmed.model_validate(result)


@router.get("/me", response_model=ReservationRows)
async def my_reservations(
    view: str = Query("list"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """The caller's reservations, flat (``list``) or one row per day (``matrix_day``)"""
    items = await reporting.my_reservations(db, actor, view)
    return ReservationRows(items=items)


@router.get("/day", response_model=ReservationRows)
async def day_reservations(
    day: date = Query(..., alias="date"),
    status: str = Query("confirmed"),
    view: str = Query("list"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """A day's lines for managers, flat (``list``) or one row per person (``matrix``)"""
    items = await reporting.day_reservations(db, actor, day, status, view)
    return ReservationRows(items=items)


@router.get("/summary", response_model=SummaryResponse)
async def summary(
    day: date = Query(..., alias="date"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Confirmed counts per category and item for kitchen preparation"""
    items = await reporting.summary(db, actor, day)
    return SummaryResponse(date=day, items=items)


@router.get("/export")
async def export_reservations(
    day: Optional[date] = Query(None, alias="date"),
    status: str = Query("confirmed"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """A day's lines as a CSV attachment"""
    day = day or local_now().date()
    content = await reporting.export_csv(db, actor, day, status)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="reservations_{day.isoformat()}.csv"'},
    )


@router.get("/lookup-order", response_model=OrderLookupResponse)
async def lookup_order(
    order_code: str = Query(...),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Show an order before redeeming it at the counter"""
    result = await reservations.lookup_order(db, actor, order_code)
    return OrderLookupResponse.model_validate(result)


@router.post("/redeem-order", response_model=RedeemResponse)
async def redeem_order(
    request: OrderCodeRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Mark all confirmed lines of an order as picked up"""
    result = await reservations.redeem_order(db, actor, request.order_code)
    return RedeemResponse.model_validate(result)


@router.post("/cancel-order", response_model=CancelOrderResponse)
async def cancel_order(
    request: OrderCodeRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Cancel every remaining line of an order (owner, manager or admin)"""
    result = await reservations.cancel_order(db, actor, request.order_code)
    return CancelOrderResponse.model_validate(result)


@router.delete("/{reservation_id}", response_model=CancelLineResponse)
async def cancel_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Cancel one of the caller's own lines"""
    result = await reservations.cancel_line(db, actor, reservation_id)
    return CancelLineResponse.model_validate(result)
