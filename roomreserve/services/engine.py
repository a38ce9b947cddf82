import logging
import threading
from datetime import timedelta
from typing import Dict
from fastapi import Request
from sqlalchemy.orm import Session
from roomreserve.models.reservation import Reservation, ReservationStatus
from roomreserve.services import availability
from roomreserve.services.locks import KeyedLocks, reservation_key
from roomreserve.services.policy import BookingPolicy
from roomreserve.services.reminders import REMINDER_LEAD, ReminderScheduler
from roomreserve.services.state_machine import ReservationStateMachine, effective_status
from roomreserve.utils.clock import SystemClock, combine, format_date, format_time, parse_date, parse_time
from roomreserve.utils.errors import InvalidTransitionError, ValidationError
from roomreserve.utils.mailer import Notifier, ReservationNotice


logger = logging.getLogger(__name__)

DEADLINE_RETRY = timedelta(seconds=1)


class ReservationEngine:
    """
    Application-scoped owner of the lifecycle state: clock, notifier, timers
    and admission locks. One instance lives on ``app.state.engine``; tests
    build their own.
    """

    def __init__(self, session_factory, clock=None, notifier=None, timer_factory=threading.Timer):
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.notifier = notifier or Notifier()
        self.locks = KeyedLocks()
        self.scheduler = ReminderScheduler(self.clock, self.notifier, timer_factory=timer_factory)
        self.state_machine = ReservationStateMachine(self.clock, self.scheduler, self.locks)
        self.policy = BookingPolicy(self.clock, self.state_machine, self.locks)

    def create_reservation(self, db: Session, user_id: str, room_id: str, date: str,
                           start_time: str, end_time: str, purpose: str = None) -> Reservation:
        reservation = self.policy.create_reservation(db, user_id, room_id, date, start_time, end_time, purpose)
        self.announce(reservation)
        return reservation

    def announce(self, reservation: Reservation):
        """Confirmation mail, reminder and deadline timer. Failures are logged, never raised."""
        try:
            self.notifier.send_confirmation(ReservationNotice.from_reservation(reservation))
        except Exception:
            logger.exception(f"Failed to send confirmation for reservation {reservation.id}")
        self.arm(reservation)

    def arm(self, reservation: Reservation, remind: bool = True):
        if remind:
            try:
                self.scheduler.schedule_reminder(ReservationNotice.from_reservation(reservation))
            except Exception:
                logger.exception(f"Failed to schedule reminder for reservation {reservation.id}")
        try:
            self.scheduler.schedule_deadline(reservation.id, reservation.check_in_deadline, self.expire)
        except Exception:
            logger.exception(f"Failed to schedule check-in deadline for reservation {reservation.id}")

    def expire(self, reservation_id: str):
        """Deadline timer callback, runs on the timer thread with its own session."""
        db = self.session_factory()
        try:
            reservation = self.state_machine.expire(db, reservation_id)
            if reservation is not None and reservation.status == ReservationStatus.CONFIRMED:
                # fired on or before the deadline, which still belongs to the check-in window
                self.scheduler.schedule_deadline(
                    reservation_id, reservation.check_in_deadline + DEADLINE_RETRY, self.expire
                )
        finally:
            db.close()

    def check_in(self, db: Session, reservation_id: str, actor_id: str) -> Reservation:
        return self.state_machine.check_in(db, reservation_id, actor_id)

    def cancel(self, db: Session, reservation_id: str, actor_id: str) -> Reservation:
        return self.state_machine.cancel(db, reservation_id, actor_id)

    def delete(self, db: Session, reservation_id: str):
        """Hard removal, outside the normal lifecycle."""
        with self.locks.hold(reservation_key(reservation_id)):
            reservation = self.state_machine.get(db, reservation_id)
            db.delete(reservation)
            db.commit()
            self.scheduler.cancel(reservation_id)
        logger.info(f"Deleted reservation {reservation_id}")

    def resend(self, db: Session, reservation_id: str) -> Reservation:
        """Repeat the confirmation and re-arm the timers of a reservation still awaiting check-in."""
        reservation = self.state_machine.get(db, reservation_id)
        current = self.status_of(reservation)
        if current != ReservationStatus.CONFIRMED:
            logger.error(f"Refusing to resend notifications for {current.value} reservation {reservation_id}")
            raise InvalidTransitionError(f"Reservation is {current.value}, nothing to resend")
        self.announce(reservation)
        return reservation

    def recover(self, db: Session) -> int:
        """
        Rebuild the in-memory timers after a restart: overdue reservations become
        no-shows, the rest get their deadline timer back and, while it is still
        ahead, their reminder.
        """
        self.state_machine.expire_overdue(db)
        now = self.clock.now()
        upcoming = db.query(Reservation).filter(Reservation.status == ReservationStatus.CONFIRMED).all()
        for reservation in upcoming:
            starts_at = combine(reservation.date, reservation.start_time)
            self.arm(reservation, remind=starts_at - REMINDER_LEAD > now)
        logger.info(f"Re-armed timers for {len(upcoming)} reservations")
        return len(upcoming)

    def shutdown(self):
        self.scheduler.shutdown()

    def status_of(self, reservation: Reservation) -> ReservationStatus:
        return effective_status(reservation, self.clock.now())

    def moment(self, date: str = None, time: str = None):
        """``date``/``time`` query parameters, defaulting to the current wall clock."""
        now = self.clock.now()
        date = date or format_date(now)
        time = time or format_time(now)
        try:
            parse_date(date)
            parse_time(time)
        except ValueError as e:
            raise ValidationError(str(e))
        return date, time

    def room_status(self, db: Session, room_id: str, date: str = None, time: str = None):
        date, time = self.moment(date, time)
        return availability.status_at(db, room_id, date, time, self.clock.now())

    def rooms_with_status(self, db: Session, date: str = None, time: str = None):
        date, time = self.moment(date, time)
        return availability.rooms_with_status(db, date, time, self.clock.now())

    def hotspots(self, db: Session, date: str = None, time: str = None):
        date, time = self.moment(date, time)
        return availability.hotspots(db, date, time, self.clock.now())

    def stats(self, db: Session) -> Dict[str, int]:
        counts = {s.value: 0 for s in ReservationStatus}
        for reservation in db.query(Reservation).all():
            counts[self.status_of(reservation).value] += 1
        return counts


def get_engine(request: Request) -> ReservationEngine:
    return request.app.state.engine
