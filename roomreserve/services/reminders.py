"""
In-memory one-shot timers per reservation: the reminder sent five minutes
before the start and the check-in deadline that turns an unattended
reservation into a no-show.

Entries live for the lifetime of the process only. ``ReservationEngine.recover``
re-arms them from the database at startup.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Tuple
from roomreserve.utils.mailer import ReservationNotice


logger = logging.getLogger(__name__)

REMINDER_LEAD = timedelta(minutes=5)

REMINDER = "reminder"
DEADLINE = "deadline"


class _Task:
    def __init__(self, timer, action):
        self.timer = timer
        self.action = action


class ReminderScheduler:
    def __init__(self, clock, notifier, timer_factory=threading.Timer):
        """
        :param clock: object with ``now()``
        :param notifier: object with ``send_reminder(notice)``
        :param timer_factory: called as ``timer_factory(delay_seconds, callback)``;
            the result must offer ``start()`` and ``cancel()``
        """
        self.clock = clock
        self.notifier = notifier
        self.timer_factory = timer_factory
        self._lock = threading.RLock()
        self._tasks: Dict[Tuple[str, str], _Task] = {}

    def schedule_reminder(self, notice: ReservationNotice):
        """Send the check-in reminder at start - 5min, or right away if that moment has passed."""
        self.cancel_reminder(notice.reservation_id)
        reminder_at = notice.starts_at - REMINDER_LEAD
        if reminder_at <= self.clock.now():
            logger.debug(f"Reminder time already passed for reservation {notice.reservation_id}, sending now")
            self._send_reminder(notice)
            return
        self._arm((REMINDER, notice.reservation_id), reminder_at, lambda: self._send_reminder(notice))

    def cancel_reminder(self, reservation_id: str):
        self._disarm((REMINDER, reservation_id))

    def schedule_deadline(self, reservation_id: str, deadline: datetime, action: Callable[[str], None]):
        """Call ``action(reservation_id)`` once the check-in deadline is reached."""
        self.cancel_deadline(reservation_id)
        self._arm((DEADLINE, reservation_id), deadline, lambda: action(reservation_id))

    def cancel_deadline(self, reservation_id: str):
        self._disarm((DEADLINE, reservation_id))

    def cancel(self, reservation_id: str):
        self.cancel_reminder(reservation_id)
        self.cancel_deadline(reservation_id)

    def pending(self, reservation_id: str):
        with self._lock:
            return sorted(kind for kind, key in self._tasks if key == reservation_id)

    def shutdown(self):
        with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
        for task in tasks:
            task.timer.cancel()
        logger.debug(f"Scheduler stopped, {len(tasks)} pending tasks dropped")

    def _arm(self, key, when: datetime, action):
        delay = max((when - self.clock.now()).total_seconds(), 0)
        with self._lock:
            task = _Task(None, action)
            task.timer = self.timer_factory(delay, lambda: self._fire(key, task))
            if hasattr(task.timer, "daemon"):
                task.timer.daemon = True
            self._tasks[key] = task
            task.timer.start()
        logger.debug(f"Scheduled {key[0]} for reservation {key[1]} in {delay:.0f}s")

    def _disarm(self, key):
        with self._lock:
            task = self._tasks.pop(key, None)
        if task is not None:
            task.timer.cancel()
            logger.debug(f"Cancelled {key[0]} for reservation {key[1]}")

    def _fire(self, key, task):
        with self._lock:
            # replaced or cancelled after the timer went off
            if self._tasks.get(key) is not task:
                return
            del self._tasks[key]
        try:
            task.action()
        except Exception:
            logger.exception(f"Scheduled {key[0]} for reservation {key[1]} failed")

    def _send_reminder(self, notice: ReservationNotice):
        try:
            self.notifier.send_reminder(notice)
        except Exception:
            logger.exception(f"Failed to send reminder for reservation {notice.reservation_id}")
