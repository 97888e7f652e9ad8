"""Reservation API.

Learn: Routes:
- POST /reservations → book a table (admins get reservation:new)
- GET /reservations → the caller's bookings
- GET /reservations/all → every booking, optional ?status= and ?date= (admin)
- PATCH /reservations/:id/status → approve / reject / ... (owner gets reservation:update)
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartdine.auth.dependencies import CurrentIdentity, get_current_user, require_admin
from smartdine.db.engine import get_db
from smartdine.realtime.notifier import Notifier, get_notifier
from smartdine.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationStatusUpdate,
)
from smartdine.services.reservation_service import (
    DuplicateReservationError,
    InvalidStatusError,
    ReservationNotFoundError,
    ReservationService,
)

router = APIRouter()


def _get_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> ReservationService:
    return ReservationService(db=db, notifier=notifier)


@router.post("/reservations", response_model=ReservationRead, status_code=201)
async def create_reservation(
    body: ReservationCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ReservationService = Depends(_get_service),
):
    try:
        return await svc.create_reservation(identity.user_id, body)
    except DuplicateReservationError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/reservations", response_model=list[ReservationRead])
async def list_my_reservations(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ReservationService = Depends(_get_service),
):
    return await svc.list_reservations(user_id=identity.user_id)


@router.get("/reservations/all", response_model=list[ReservationRead])
async def list_all_reservations(
    status: Optional[str] = Query(None),
    on: Optional[dt.date] = Query(None, alias="date"),
    _admin: CurrentIdentity = Depends(require_admin),
    svc: ReservationService = Depends(_get_service),
):
    return await svc.list_reservations(status=status, on=on)


@router.patch("/reservations/{reservation_id}/status", response_model=ReservationRead)
async def update_reservation_status(
    reservation_id: int,
    body: ReservationStatusUpdate,
    _admin: CurrentIdentity = Depends(require_admin),
    svc: ReservationService = Depends(_get_service),
):
    try:
        return await svc.update_status(reservation_id, body.status)
    except ReservationNotFoundError:
        raise HTTPException(status_code=404, detail="Reservation not found")
    except InvalidStatusError as e:
        raise HTTPException(status_code=409, detail=str(e))
