from typing import List
from sqlalchemy.orm import Session
from roomreserve.models.reservation import ACTIVE_STATUSES, Reservation


def active_reservations(db: Session, room_id: str, date: str) -> List[Reservation]:
    return (
        db.query(Reservation)
        .filter(
            Reservation.room_id == room_id,
            Reservation.date == date,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Reservation.start_time)
        .all()
    )


def has_conflict(db: Session, room_id: str, date: str, start_time: str, end_time: str) -> bool:
    """
    True if an active reservation of the room on that date overlaps ``[start_time, end_time)``.
    Zero padded ``HH:MM`` strings order the same way as the times they encode.
    """
    conflict = db.query(Reservation).filter(
        Reservation.room_id == room_id,
        Reservation.date == date,
        Reservation.status.in_(ACTIVE_STATUSES),
        Reservation.start_time < end_time,
        Reservation.end_time > start_time,
    ).first()
    return conflict is not None
