"""Reservation service — booking tables and the admin approval flow.

Learn: A user can hold only one active (pending or approved) booking
per date and time slot. New bookings go to admins as reservation:new;
status changes go back to the owner as reservation:update.
"""

import datetime as dt
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.db.models import Reservation
from smartdine.realtime.notifier import Notifier
from smartdine.schemas.reservation import ReservationCreate

logger = structlog.get_logger()

ACTIVE_STATUSES = ("pending", "approved")
FINAL_STATUSES = {"rejected", "completed", "cancelled"}


class ReservationNotFoundError(Exception):
    """Raised when a reservation is not found."""


class DuplicateReservationError(Exception):
    """Raised when the user already holds an active booking for the slot."""


class InvalidStatusError(Exception):
    """Raised when moving a reservation out of a final status."""


class ReservationService:
    def __init__(self, db: AsyncSession, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier  # None for read-only use

    async def create_reservation(
        self, user_id: str, body: ReservationCreate
    ) -> Reservation:
        q = select(Reservation.id).where(
            Reservation.user_id == user_id,
            Reservation.date == body.date,
            Reservation.time == body.time,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        if (await self.db.execute(q)).first() is not None:
            raise DuplicateReservationError(
                "You already have a reservation for this date and time"
            )

        reservation = Reservation(
            user_id=user_id,
            date=body.date,
            time=body.time,
            guests=body.guests,
            event_type=body.event_type,
            special_requests=body.special_requests,
            contact_phone=body.contact_phone,
            contact_email=body.contact_email,
        )
        self.db.add(reservation)
        await self.db.commit()
        await self.db.refresh(reservation)

        logger.info(
            "reservation.created",
            reservation_id=reservation.id,
            user_id=user_id,
            date=str(body.date),
            time=body.time,
        )
        if self.notifier is not None:
            self.notifier.new_reservation(reservation)
        return reservation

    async def get_reservation(self, reservation_id: int) -> Reservation:
        reservation = await self.db.get(Reservation, reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(f"Reservation {reservation_id} not found")
        return reservation

    async def list_reservations(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        on: Optional[dt.date] = None,
    ) -> list[Reservation]:
        q = select(Reservation).order_by(Reservation.date, Reservation.time)
        if user_id is not None:
            q = q.where(Reservation.user_id == user_id)
        if status:
            q = q.where(Reservation.status == status)
        if on is not None:
            q = q.where(Reservation.date == on)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def count_for_day(self, day: Optional[dt.date] = None) -> int:
        """Number of bookings on a day (today by default), for the assistant."""
        day = day or dt.date.today()
        q = select(func.count(Reservation.id)).where(Reservation.date == day)
        return (await self.db.execute(q)).scalar_one()

    async def update_status(self, reservation_id: int, status: str) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        if reservation.status in FINAL_STATUSES and status != reservation.status:
            raise InvalidStatusError(
                f"Reservation {reservation_id} is already {reservation.status}"
            )

        reservation.status = status
        await self.db.commit()
        await self.db.refresh(reservation)

        logger.info(
            "reservation.status_changed",
            reservation_id=reservation.id,
            status=status,
        )
        if self.notifier is not None:
            self.notifier.reservation_updated(reservation)
        return reservation
