"""
Reservation engine

Creates, cancels and redeems reservation lines while keeping these rules:

- at most one confirmed line per (user, day, category), backed by a partial
  unique index so a lost race surfaces as a Conflict instead of a duplicate;
- a planned item's stock quota is never exceeded; the planned-relation row
  is locked FOR UPDATE before counting, so concurrent reservers for the last
  unit queue behind each other;
- lines created together share one order code and are written all or
  nothing;
- a line leaves ``confirmed`` at most once, to ``cancelled`` or ``picked``.

Every write runs in one transaction; any failure rolls back before the typed
error propagates. Nothing is retried here: callers resubmit.
"""

import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import transaction
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    PolicyViolationError,
)
from app.models.menu import Category, DailyMenu, MenuItem
from app.models.reservation import Reservation, ReservationStatus
from app.models.user import RESERVING_ROLES, STAFF_ROLES, User, UserRole
from app.services import catalog, settings_store
from app.services.policy import is_before, local_now

logger = structlog.get_logger()

CODE_LENGTH = 10
CODE_ALPHABET = string.ascii_uppercase + string.digits

# Display order of order lines
CATEGORIES = list(Category)


def generate_code(length: int = CODE_LENGTH) -> str:
    """Short random uppercase alphanumeric token"""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class Actor:
    """Verified identity of the caller, as issued by the auth layer"""
    user_id: int
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(user_id=user.id, role=UserRole(user.role))

    @property
    def can_reserve(self) -> bool:
        return self.role in RESERVING_ROLES

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


@dataclass
class ReservationResult:
    reservation_id: int
    pickup_code: str
    order_code: str


@dataclass
class OrderLine:
    reservation_id: int
    category: Category
    pickup_code: str
    menu_item_id: int
    label: str


@dataclass
class OrderResult:
    order_code: str
    day: date
    lines: List[OrderLine] = field(default_factory=list)


@dataclass
class CancelLineResult:
    reservation_id: int
    status: ReservationStatus
    cancelled: bool


@dataclass
class CancelDiagnostic:
    total: int
    confirmed: int
    already_cancelled: int
    already_picked: int


@dataclass
class CancelOrderResult:
    order_code: str
    day: date
    cancelled: int
    diagnostic: CancelDiagnostic


@dataclass
class OrderOwner:
    user_id: int
    matricule: str
    full_name: Optional[str]


@dataclass
class LookupLine:
    id: int
    category: Category
    label: str
    status: ReservationStatus
    pickup_code: str
    picked_at: Optional[datetime]


@dataclass
class OrderLookup:
    order_code: str
    day: date
    owner: OrderOwner
    lines: List[LookupLine]


@dataclass
class RedeemResult:
    order_code: str
    day: date
    owner: OrderOwner
    updated: int
    already: int
    invalid: int


def require_reserving_role(actor: Actor) -> None:
    if not actor.can_reserve:
        raise ForbiddenError("Role not allowed to reserve")


def require_staff(actor: Actor) -> None:
    if not actor.is_staff:
        raise ForbiddenError("Manager or admin role required")


def parse_selection(raw: Mapping[str, Optional[int]]) -> Dict[Category, int]:
    """
    Normalize a client selection (``{"plat": 5, "boisson_id": 9, ...}``)
    into canonical categories. Unset entries are dropped.
    """
    selection: Dict[Category, int] = {}
    for key, item_id in raw.items():
        if item_id is None:
            continue
        category = Category.parse(key)
        if category is None:
            raise InvalidInputError(f"Unknown category: {key}")
        if category in selection:
            raise InvalidInputError(f"At most one {category.value} per order")
        selection[category] = int(item_id)
    return selection


async def _check_open_day(db: AsyncSession, actor: Actor, day: date, now: datetime) -> DailyMenu:
    """Cutoff, acting user and day lock checks shared by reserve and confirm"""
    cutoff = await settings_store.get_cutoff_time(db)
    if not is_before(day, cutoff, now):
        raise PolicyViolationError(f"Reservation cutoff passed ({cutoff})", error_code="CutoffPassed")

    if await db.get(User, actor.user_id) is None:
        raise NotFoundError("Unknown user")

    daily = await catalog.get_daily_menu(db, day)
    if daily is None:
        raise NotFoundError("No menu planned for this day")
    if daily.locked:
        raise PolicyViolationError("Day is locked", error_code="DayLocked")
    return daily


def _item_category(item: MenuItem) -> Category:
    category = Category.parse(item.category)
    if category is None:
        raise PolicyViolationError(f"Category not allowed: {item.category}", error_code="CategoryNotAllowed")
    return category


async def _check_stock(db: AsyncSession, daily: DailyMenu, item: MenuItem) -> None:
    planned = await catalog.get_planned(db, daily.id, item.id, lock=True)
    if planned is None:
        raise PolicyViolationError(f'Not planned: "{item.label}"', error_code="NotPlanned")
    if planned.stock_quota is not None:
        used = await catalog.count_confirmed(db, daily.day, item.id)
        if used >= planned.stock_quota:
            raise ConflictError(
                f'Quota reached: "{item.label}"',
                error_code="QuotaReached",
                details={"menu_item_id": item.id, "stock_quota": planned.stock_quota},
            )


async def _check_category_free(db: AsyncSession, user_id: int, day: date, category: Category) -> None:
    result = await db.execute(
        select(Reservation.id).where(
            Reservation.user_id == user_id,
            Reservation.day == day,
            Reservation.category == category,
            Reservation.status == ReservationStatus.CONFIRMED,
        )
    )
    if result.first() is not None:
        raise ConflictError(
            f"Already reserved for category {category.value}",
            error_code="AlreadyReserved",
        )


async def _insert_lines(db: AsyncSession, lines: List[Reservation]) -> None:
    db.add_all(lines)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race on the per-category index (or, rarely, a code collision)
        raise ConflictError(
            "Conflict: already reserved for this category",
            error_code="AlreadyReserved",
        ) from exc


async def reserve(
    db: AsyncSession,
    actor: Actor,
    day: date,
    menu_item_id: int,
    now: Optional[datetime] = None,
) -> ReservationResult:
    """Reserve a single item; the line gets its own order code"""
    now = now or local_now()
    require_reserving_role(actor)

    async with transaction(db):
        daily = await _check_open_day(db, actor, day, now)

        item = await catalog.get_item(db, menu_item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        category = _item_category(item)

        await _check_stock(db, daily, item)
        await _check_category_free(db, actor.user_id, day, category)

        line = Reservation(
            user_id=actor.user_id,
            menu_item_id=item.id,
            day=day,
            category=category,
            status=ReservationStatus.CONFIRMED,
            pickup_code=generate_code(),
            order_code=generate_code(),
            created_at=now,
        )
        await _insert_lines(db, [line])
        result = ReservationResult(
            reservation_id=line.id,
            pickup_code=line.pickup_code,
            order_code=line.order_code,
        )

    logger.info(
        "Reservation created",
        user_id=actor.user_id,
        day=str(day),
        menu_item_id=menu_item_id,
        order_code=result.order_code,
    )
    return result


async def confirm_order(
    db: AsyncSession,
    actor: Actor,
    day: date,
    selection: Mapping[Category, int],
    now: Optional[datetime] = None,
) -> OrderResult:
    """
    Confirm a cart of up to one item per category under one order code.

    Every line is validated before the first insert; if any check fails no
    line is written.
    """
    now = now or local_now()
    if not selection:
        raise InvalidInputError("Empty selection: at least one item is required")
    require_reserving_role(actor)

    async with transaction(db):
        daily = await _check_open_day(db, actor, day, now)

        items = await catalog.get_items(db, selection.values())
        chosen: List[MenuItem] = []
        categories = set()
        for item_id in selection.values():
            item = items.get(item_id)
            if item is None:
                raise NotFoundError(f"Menu item {item_id} not found")
            category = _item_category(item)
            if category in categories:
                raise InvalidInputError(f"At most one {category.value} per order")
            categories.add(category)
            chosen.append(item)

        # Planned rows are locked in category order whatever the client key order
        chosen.sort(key=lambda item: CATEGORIES.index(_item_category(item)))

        for item in chosen:
            await _check_stock(db, daily, item)

        for item in chosen:
            await _check_category_free(db, actor.user_id, day, _item_category(item))

        order_code = generate_code()
        lines = [
            Reservation(
                user_id=actor.user_id,
                menu_item_id=item.id,
                day=day,
                category=_item_category(item),
                status=ReservationStatus.CONFIRMED,
                pickup_code=generate_code(),
                order_code=order_code,
                created_at=now,
            )
            for item in chosen
        ]
        await _insert_lines(db, lines)

        result = OrderResult(order_code=order_code, day=day)
        for item, line in zip(chosen, lines):
            result.lines.append(OrderLine(
                reservation_id=line.id,
                category=line.category,
                pickup_code=line.pickup_code,
                menu_item_id=item.id,
                label=item.label,
            ))

    logger.info(
        "Order confirmed",
        user_id=actor.user_id,
        day=str(day),
        order_code=order_code,
        line_count=len(result.lines),
    )
    return result


async def cancel_line(
    db: AsyncSession,
    actor: Actor,
    reservation_id: int,
    now: Optional[datetime] = None,
) -> CancelLineResult:
    """Cancel one of the caller's own lines before the cancellation deadline"""
    now = now or local_now()
    require_reserving_role(actor)

    async with transaction(db):
        result = await db.execute(
            select(Reservation)
            .where(Reservation.id == reservation_id, Reservation.user_id == actor.user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        line = result.scalar_one_or_none()
        if line is None:
            raise NotFoundError("Reservation not found")

        deadline = await settings_store.get_cancel_deadline(db)
        if not is_before(line.day, deadline, now):
            raise PolicyViolationError(
                f"Cancellation deadline passed ({deadline})",
                error_code="CancelDeadlinePassed",
            )

        if line.status != ReservationStatus.CONFIRMED or line.picked_at is not None:
            outcome = CancelLineResult(reservation_id=line.id, status=line.status, cancelled=False)
        else:
            line.cancel()
            outcome = CancelLineResult(reservation_id=line.id, status=line.status, cancelled=True)

    logger.info(
        "Reservation cancel requested",
        user_id=actor.user_id,
        reservation_id=reservation_id,
        cancelled=outcome.cancelled,
        status=outcome.status.value,
    )
    return outcome


async def _lock_order(db: AsyncSession, order_code: str) -> List[Reservation]:
    code = (order_code or "").strip()
    if not code:
        raise InvalidInputError("order_code is required")
    result = await db.execute(
        select(Reservation)
        .where(Reservation.order_code == code)
        .order_by(Reservation.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    lines = list(result.scalars().all())
    if not lines:
        raise NotFoundError("Reservation not found")
    return lines


async def cancel_order(
    db: AsyncSession,
    actor: Actor,
    order_code: str,
    now: Optional[datetime] = None,
) -> CancelOrderResult:
    """
    Cancel every still-confirmed, unredeemed line of an order.

    The owner is bound by the cancellation deadline; managers and admins
    are not. Lines already picked or cancelled are counted, not touched.
    """
    now = now or local_now()

    async with transaction(db):
        lines = await _lock_order(db, order_code)
        owner_id = lines[0].user_id
        day = lines[0].day

        if not actor.is_staff and owner_id != actor.user_id:
            raise ForbiddenError("Not allowed to cancel this order")

        if not actor.is_staff:
            deadline = await settings_store.get_cancel_deadline(db)
            if not is_before(day, deadline, now):
                raise PolicyViolationError(
                    f"Cancellation deadline passed ({deadline})",
                    error_code="CancelDeadlinePassed",
                )

        diagnostic = CancelDiagnostic(
            total=len(lines),
            confirmed=sum(1 for r in lines if r.status == ReservationStatus.CONFIRMED),
            already_cancelled=sum(1 for r in lines if r.status == ReservationStatus.CANCELLED),
            already_picked=sum(1 for r in lines if r.picked_at is not None),
        )

        cancelled = 0
        for line in lines:
            if line.status == ReservationStatus.CONFIRMED and line.picked_at is None:
                line.cancel()
                cancelled += 1

    outcome = CancelOrderResult(
        order_code=lines[0].order_code,
        day=day,
        cancelled=cancelled,
        diagnostic=diagnostic,
    )
    logger.info(
        "Order cancelled",
        actor_id=actor.user_id,
        owner_id=owner_id,
        order_code=outcome.order_code,
        cancelled=cancelled,
        total=diagnostic.total,
    )
    return outcome


async def _owner(db: AsyncSession, user_id: int) -> OrderOwner:
    result = await db.execute(
        select(User.id, User.matricule, User.full_name).where(User.id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        return OrderOwner(user_id=user_id, matricule="", full_name=None)
    return OrderOwner(user_id=row.id, matricule=row.matricule, full_name=row.full_name)


async def lookup_order(db: AsyncSession, actor: Actor, order_code: str) -> OrderLookup:
    """Read-only view of an order for counter verification before redemption"""
    require_staff(actor)
    code = (order_code or "").strip()
    if not code:
        raise InvalidInputError("order_code is required")

    result = await db.execute(
        select(
            Reservation.id,
            Reservation.user_id,
            Reservation.day,
            Reservation.category,
            Reservation.status,
            Reservation.pickup_code,
            Reservation.picked_at,
            MenuItem.label,
        )
        .join(MenuItem, MenuItem.id == Reservation.menu_item_id)
        .where(Reservation.order_code == code)
        .order_by(Reservation.id)
    )
    rows = sorted(result.all(), key=lambda row: (CATEGORIES.index(row.category), row.id))
    if not rows:
        raise NotFoundError("Reservation not found")

    return OrderLookup(
        order_code=code,
        day=rows[0].day,
        owner=await _owner(db, rows[0].user_id),
        lines=[
            LookupLine(
                id=row.id,
                category=row.category,
                label=row.label,
                status=row.status,
                pickup_code=row.pickup_code,
                picked_at=row.picked_at,
            )
            for row in rows
        ],
    )


async def redeem_order(
    db: AsyncSession,
    actor: Actor,
    order_code: str,
    now: Optional[datetime] = None,
) -> RedeemResult:
    """Mark every confirmed line of an order as picked up, in one scan"""
    require_staff(actor)
    now = now or local_now()

    async with transaction(db):
        lines = await _lock_order(db, order_code)
        updated = already = invalid = 0
        for line in lines:
            if line.picked_at is not None:
                already += 1
            elif line.status != ReservationStatus.CONFIRMED:
                invalid += 1
            else:
                line.mark_picked(now)
                updated += 1
        owner = await _owner(db, lines[0].user_id)

    outcome = RedeemResult(
        order_code=lines[0].order_code,
        day=lines[0].day,
        owner=owner,
        updated=updated,
        already=already,
        invalid=invalid,
    )
    logger.info(
        "Order redeemed",
        actor_id=actor.user_id,
        order_code=outcome.order_code,
        updated=updated,
        already=already,
        invalid=invalid,
    )
    return outcome
