"""Reservation model"""

import enum
from datetime import datetime
from sqlalchemy import Column, String, Integer, Date, DateTime, Enum, ForeignKey, Index, text
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.menu import category_type
from app.services.policy import local_now


class ReservationStatus(str, enum.Enum):
    """Lifecycle of a reservation line"""
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    PICKED = "picked"


# confirmed -> cancelled and confirmed -> picked; both targets are terminal.
ALLOWED_TRANSITIONS = {
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CANCELLED, ReservationStatus.PICKED}),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.PICKED: frozenset(),
}


class InvalidTransition(Exception):
    """Raised when a reservation is moved out of a terminal state"""

    def __init__(self, current: ReservationStatus, target: ReservationStatus):
        self.current = current
        self.target = target
        super().__init__(f"cannot move reservation from {current.value} to {target.value}")


class Reservation(Base):
    """One reserved item for one user on one day"""
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id"), nullable=False)
    day = Column(Date, nullable=False)

    # Copied from the item at creation; never recomputed from the catalog
    category = Column(category_type, nullable=False)

    status = Column(
        Enum(ReservationStatus, name="reservation_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ReservationStatus.CONFIRMED,
    )

    # Per line code, scanned or typed at the counter
    pickup_code = Column(String(16), unique=True, nullable=False)
    # Shared by the 1..4 lines created together for the same day
    order_code = Column(String(64), index=True)

    # Canteen local wall clock, like the cutoff and deadline checks
    picked_at = Column(DateTime)
    created_at = Column(DateTime, default=local_now)
    updated_at = Column(DateTime, default=local_now, onupdate=local_now)

    # Relationships
    user = relationship("User", back_populates="reservations")
    menu_item = relationship("MenuItem")

    def _transition(self, target: ReservationStatus) -> None:
        current = ReservationStatus(self.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(current, target)
        self.status = target

    def cancel(self) -> None:
        self._transition(ReservationStatus.CANCELLED)

    def mark_picked(self, at: datetime) -> None:
        if self.picked_at is not None:
            raise InvalidTransition(ReservationStatus(self.status), ReservationStatus.PICKED)
        self._transition(ReservationStatus.PICKED)
        self.picked_at = at


# At most one confirmed line per user, day and category. Cancelled and
# picked lines are history and may repeat.
Index(
    "uq_reservation_user_day_category_confirmed",
    Reservation.user_id,
    Reservation.day,
    Reservation.category,
    unique=True,
    postgresql_where=text("status = 'confirmed'"),
    sqlite_where=text("status = 'confirmed'"),
)

Index("ix_reservations_day_status", Reservation.day, Reservation.status)
