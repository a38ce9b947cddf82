from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from roomreserve.db import get_db
from roomreserve.models.reservation import Reservation
from roomreserve.schemas.reservation import (
    ReservationCreate,
    ReservationDetailsResponse,
    ReservationResponse,
)
from roomreserve.services.engine import ReservationEngine, get_engine
from roomreserve.utils.auth import get_current_user
from roomreserve.utils.errors import ForbiddenError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
)


def to_response(reservation: Reservation, engine: ReservationEngine, schema=ReservationResponse):
    """Serialize with the effective status, so overdue reservations already read as no-shows."""
    response = schema.model_validate(reservation)
    response.status = engine.status_of(reservation)
    return response


@router.post(
    "/",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reserve a room",
    description="Reserve a room for a same-day time window. Requires authentication."
)
def create_reservation(
    reservation: ReservationCreate,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
    current_user: dict = Depends(get_current_user),
):
    """
    Reserve a room.

    - **room_id**: ID of the room to reserve.
    - **date**: Day of the reservation, YYYY-MM-DD.
    - **start_time** / **end_time**: HH:MM, 24 hour clock, start before end.
    - **purpose**: Optional free text.

    The start must be at least 30 minutes away, each student may hold one
    active reservation per day, and the slot must not overlap another one.
    """
    logger.debug(f"Creating reservation for user: {current_user['student_id']}, room_id: {reservation.room_id}")
    created = engine.create_reservation(
        db,
        user_id=current_user["id"],
        room_id=reservation.room_id,
        date=reservation.date,
        start_time=reservation.start_time,
        end_time=reservation.end_time,
        purpose=reservation.purpose,
    )
    return to_response(created, engine)


@router.get(
    "/my",
    response_model=List[ReservationDetailsResponse],
    summary="List my reservations",
)
def get_my_reservations(
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
    current_user: dict = Depends(get_current_user),
):
    reservations = (
        db.query(Reservation)
        .filter(Reservation.user_id == current_user["id"])
        .order_by(Reservation.date, Reservation.start_time)
        .all()
    )
    logger.debug(f"Retrieved {len(reservations)} reservations for user {current_user['student_id']}")
    return [to_response(r, engine, ReservationDetailsResponse) for r in reservations]


@router.get(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Get a reservation by ID",
)
def get_reservation(
    reservation_id: str,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
    current_user: dict = Depends(get_current_user),
):
    reservation = engine.state_machine.get(db, reservation_id)
    if reservation.user_id != current_user["id"] and not current_user["is_admin"]:
        raise ForbiddenError("Not authorized")
    return to_response(reservation, engine)


@router.post(
    "/{reservation_id}/checkin",
    response_model=ReservationResponse,
    summary="Check in",
    description="Check in between 15 minutes before and 15 minutes after the start. Requires ownership."
)
def check_in(
    reservation_id: str,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
    current_user: dict = Depends(get_current_user),
):
    """
    Check in to a reservation.

    Attempts after the deadline mark the reservation as a no-show and fail.
    """
    reservation = engine.check_in(db, reservation_id, current_user["id"])
    return to_response(reservation, engine)


@router.post(
    "/{reservation_id}/cancel",
    response_model=ReservationResponse,
    summary="Cancel a reservation",
    description="Cancel a confirmed reservation. Requires ownership."
)
def cancel_reservation(
    reservation_id: str,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
    current_user: dict = Depends(get_current_user),
):
    reservation = engine.cancel(db, reservation_id, current_user["id"])
    logger.debug(f"Cancelled reservation: {reservation_id}")
    return to_response(reservation, engine)
