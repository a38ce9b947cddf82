"""
Reservation status lifecycle.

    pending ----> confirmed ----> checked_in
       |              |---------> no_show
       '--------------+---------> cancelled

``checked_in``, ``no_show`` and ``cancelled`` are terminal. A ``confirmed``
reservation whose check-in deadline has passed already reads as ``no_show``
through ``effective_status``; the stored row catches up on the next write
that touches it, when the deadline timer fires, or at startup.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from roomreserve.models.reservation import Reservation, ReservationStatus
from roomreserve.services.locks import reservation_key
from roomreserve.utils.clock import combine
from roomreserve.utils.errors import (
    CheckInDeadlineError,
    CheckInWindowError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
)


logger = logging.getLogger(__name__)

CHECK_IN_WINDOW = timedelta(minutes=15)

TERMINAL_STATUSES = frozenset({
    ReservationStatus.CHECKED_IN,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
})

TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {
        ReservationStatus.CHECKED_IN,
        ReservationStatus.NO_SHOW,
        ReservationStatus.CANCELLED,
    },
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in TRANSITIONS.get(current, set())


def check_in_deadline_for(date: str, start_time: str) -> datetime:
    return combine(date, start_time) + CHECK_IN_WINDOW


def is_overdue(reservation: Reservation, now: datetime) -> bool:
    return (
        reservation.status == ReservationStatus.CONFIRMED
        and reservation.check_in_deadline is not None
        and now > reservation.check_in_deadline
    )


def effective_status(reservation: Reservation, now: datetime) -> ReservationStatus:
    """Status as it should be displayed or counted at ``now``, without touching storage."""
    if is_overdue(reservation, now):
        return ReservationStatus.NO_SHOW
    return reservation.status


class ReservationStateMachine:
    def __init__(self, clock, scheduler, locks):
        self.clock = clock
        self.scheduler = scheduler
        self.locks = locks

    def get(self, db: Session, reservation_id: str) -> Reservation:
        reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
        if not reservation:
            logger.error(f"Reservation not found: {reservation_id}")
            raise NotFoundError("Reservation not found")
        return reservation

    def _get_owned(self, db: Session, reservation_id: str, actor_id: str) -> Reservation:
        reservation = self.get(db, reservation_id)
        if reservation.user_id != actor_id:
            logger.error(f"User {actor_id} not authorized for reservation {reservation_id}")
            raise ForbiddenError("Not authorized")
        return reservation

    def _apply(self, db: Session, reservation: Reservation, target: ReservationStatus,
               checked_in_at: Optional[datetime] = None) -> Reservation:
        if not can_transition(reservation.status, target):
            logger.error(f"Invalid transition {reservation.status.value} -> {target.value} "
                         f"for reservation {reservation.id}")
            raise InvalidTransitionError(
                f"Reservation is {reservation.status.value} and cannot become {target.value}"
            )
        reservation.status = target
        if target == ReservationStatus.CHECKED_IN:
            reservation.checked_in_at = checked_in_at
        db.commit()
        db.refresh(reservation)
        if target in TERMINAL_STATUSES:
            self.scheduler.cancel(reservation.id)
        logger.debug(f"Reservation {reservation.id} is now {target.value}")
        return reservation

    def check_in(self, db: Session, reservation_id: str, actor_id: str) -> Reservation:
        """
        Check the owner in during ``[start - 15min, start + 15min]``.

        Too early raises ``CheckInWindowError`` and changes nothing. Too late
        stores ``no_show`` and then raises ``CheckInDeadlineError``.
        """
        with self.locks.hold(reservation_key(reservation_id)):
            reservation = self._get_owned(db, reservation_id, actor_id)
            if not can_transition(reservation.status, ReservationStatus.CHECKED_IN):
                logger.error(f"Reservation {reservation_id} cannot be checked in from {reservation.status.value}")
                raise InvalidTransitionError("Reservation cannot be checked in")

            now = self.clock.now()
            opens_at = combine(reservation.date, reservation.start_time) - CHECK_IN_WINDOW
            if now < opens_at:
                logger.error(f"Check-in for reservation {reservation_id} attempted before {opens_at}")
                raise CheckInWindowError()
            if now > reservation.check_in_deadline:
                self._apply(db, reservation, ReservationStatus.NO_SHOW)
                logger.error(f"Check-in deadline passed for reservation {reservation_id}, marked no-show")
                raise CheckInDeadlineError()
            return self._apply(db, reservation, ReservationStatus.CHECKED_IN, checked_in_at=now)

    def cancel(self, db: Session, reservation_id: str, actor_id: str) -> Reservation:
        with self.locks.hold(reservation_key(reservation_id)):
            reservation = self._get_owned(db, reservation_id, actor_id)
            if is_overdue(reservation, self.clock.now()):
                self._apply(db, reservation, ReservationStatus.NO_SHOW)
            return self._apply(db, reservation, ReservationStatus.CANCELLED)

    def mark_no_show(self, db: Session, reservation_id: str) -> Reservation:
        """Idempotent: a reservation that already is a no-show is returned unchanged."""
        with self.locks.hold(reservation_key(reservation_id)):
            reservation = self.get(db, reservation_id)
            if reservation.status == ReservationStatus.NO_SHOW:
                return reservation
            return self._apply(db, reservation, ReservationStatus.NO_SHOW)

    def expire(self, db: Session, reservation_id: str) -> Optional[Reservation]:
        """Deadline timer entry point: mark a no-show only if the reservation is still overdue."""
        with self.locks.hold(reservation_key(reservation_id)):
            reservation = db.query(Reservation).filter(Reservation.id == reservation_id).first()
            if reservation is None or reservation.status != ReservationStatus.CONFIRMED:
                return reservation
            if not is_overdue(reservation, self.clock.now()):
                return reservation
            logger.info(f"Reservation {reservation_id} missed its check-in deadline, marking no-show")
            return self._apply(db, reservation, ReservationStatus.NO_SHOW)

    def expire_overdue(self, db: Session, room_id: str = None, user_id: str = None, date: str = None) -> int:
        """Store ``no_show`` for every overdue ``confirmed`` reservation matching the filters."""
        now = self.clock.now()
        query = db.query(Reservation).filter(
            Reservation.status == ReservationStatus.CONFIRMED,
            Reservation.check_in_deadline < now,
        )
        if room_id is not None:
            query = query.filter(Reservation.room_id == room_id)
        if user_id is not None:
            query = query.filter(Reservation.user_id == user_id)
        if date is not None:
            query = query.filter(Reservation.date == date)

        overdue = query.all()
        for reservation in overdue:
            reservation.status = ReservationStatus.NO_SHOW
        if overdue:
            db.commit()
            for reservation in overdue:
                self.scheduler.cancel(reservation.id)
            logger.info(f"Marked {len(overdue)} overdue reservations as no-show")
        return len(overdue)
