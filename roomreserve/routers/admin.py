import logging
from typing import Dict, List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from roomreserve.db import get_db
from roomreserve.models.reservation import Reservation
from roomreserve.routers.reservations import to_response
from roomreserve.schemas.reservation import MessageResponse, ReservationDetailsResponse
from roomreserve.services.engine import ReservationEngine, get_engine
from roomreserve.utils.auth import get_current_admin


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)


@router.get("/reservations", response_model=List[ReservationDetailsResponse])
def get_all_reservations(db: Session = Depends(get_db), engine: ReservationEngine = Depends(get_engine)):
    """Every reservation with its user and room, by date and start time."""
    reservations = db.query(Reservation).order_by(Reservation.date, Reservation.start_time).all()
    return [to_response(r, engine, ReservationDetailsResponse) for r in reservations]


@router.get("/stats", response_model=Dict[str, int])
def get_stats(db: Session = Depends(get_db), engine: ReservationEngine = Depends(get_engine)):
    """Reservation counts per effective status."""
    return engine.stats(db)


@router.post("/reservations/{reservation_id}/resend", response_model=MessageResponse)
def resend_notifications(
    reservation_id: str,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """Send the confirmation again and re-arm the reminder."""
    engine.resend(db, reservation_id)
    return {"message": "Emails re-sent and reminder scheduled"}


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(
    reservation_id: str,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """
    Remove a reservation for good.
    Use cancellation for normal flows; this bypasses the lifecycle.
    """
    engine.delete(db, reservation_id)
    return None
