import logging
from datetime import timedelta
from sqlalchemy.orm import Session
from roomreserve.models.reservation import ACTIVE_STATUSES, Reservation, ReservationStatus
from roomreserve.models.room import Room
from roomreserve.services.conflicts import has_conflict
from roomreserve.services.locks import room_day_key, user_day_key
from roomreserve.services.state_machine import check_in_deadline_for
from roomreserve.utils.clock import combine
from roomreserve.utils.errors import (
    DailyLimitExceeded,
    LeadTimeError,
    NotFoundError,
    SlotConflictError,
)
from roomreserve.utils.validation_helpers import validate_slot


logger = logging.getLogger(__name__)

LEAD_TIME = timedelta(minutes=30)
DAILY_LIMIT = 1


def active_count_for_day(db: Session, user_id: str, date: str) -> int:
    return db.query(Reservation).filter(
        Reservation.user_id == user_id,
        Reservation.date == date,
        Reservation.status.in_(ACTIVE_STATUSES),
    ).count()


class BookingPolicy:
    """Admits new reservations.

    Checks run in a fixed order and the first failure wins: slot format, room,
    lead time, daily cap, room conflict. Everything from the cap check to the
    insert happens while holding the locks for the room-day and the user-day,
    so two racing requests cannot both pass the same check.
    """

    def __init__(self, clock, state_machine, locks):
        self.clock = clock
        self.state_machine = state_machine
        self.locks = locks

    def create_reservation(self, db: Session, user_id: str, room_id: str, date: str,
                           start_time: str, end_time: str, purpose: str = None) -> Reservation:
        logger.debug(f"Admitting reservation for user {user_id}, room {room_id}, {date} {start_time}-{end_time}")
        validate_slot(date, start_time, end_time)

        room = db.query(Room).filter(Room.id == room_id).first()
        if not room or not room.is_active:
            logger.error(f"Room not found: {room_id}")
            raise NotFoundError("Room not found")

        starts_at = combine(date, start_time)
        if starts_at < self.clock.now() + LEAD_TIME:
            logger.error(f"Reservation start {starts_at} is less than {LEAD_TIME} away")
            raise LeadTimeError()

        with self.locks.hold(room_day_key(room_id, date), user_day_key(user_id, date)):
            # overdue no-shows must not count against the cap or block the room
            self.state_machine.expire_overdue(db, room_id=room_id, date=date)
            self.state_machine.expire_overdue(db, user_id=user_id, date=date)

            if active_count_for_day(db, user_id, date) >= DAILY_LIMIT:
                logger.error(f"User {user_id} already has an active reservation on {date}")
                raise DailyLimitExceeded()

            if has_conflict(db, room_id, date, start_time, end_time):
                logger.error(f"Overlapping reservation found for room {room_id}, {date} {start_time}-{end_time}")
                raise SlotConflictError()

            reservation = Reservation(
                user_id=user_id,
                room_id=room_id,
                date=date,
                start_time=start_time,
                end_time=end_time,
                purpose=purpose,
                status=ReservationStatus.CONFIRMED,
                created_at=self.clock.now(),
                check_in_deadline=check_in_deadline_for(date, start_time),
            )
            db.add(reservation)
            db.commit()
            db.refresh(reservation)

        logger.debug(f"Created reservation {reservation.id}, deadline {reservation.check_in_deadline}")
        return reservation
