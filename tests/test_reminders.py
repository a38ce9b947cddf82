import threading
from datetime import datetime, timedelta
import pytest

from roomreserve.services.reminders import ReminderScheduler
from roomreserve.utils.clock import FixedClock, format_time
from roomreserve.utils.mailer import ReservationNotice

from tests.conf_tests import FailingNotifier, ManualTimers

NOW = datetime(2024, 6, 1, 12, 0)


class ReminderRecorder:
    def __init__(self):
        self.reminded = []

    def send_reminder(self, notice):
        self.reminded.append(notice.reservation_id)


def notice_starting_in(minutes, reservation_id="r-1"):
    starts_at = NOW + timedelta(minutes=minutes)
    return ReservationNotice(
        reservation_id=reservation_id,
        date="2024-06-01",
        start_time=format_time(starts_at),
        end_time=format_time(starts_at + timedelta(hours=1)),
        purpose=None,
        user_email="student@student.ateneo.edu",
        user_name="Student",
        room_name="Room 201",
        building="JGSOM",
        floor=2,
    )


@pytest.fixture
def timers():
    return ManualTimers()


@pytest.fixture
def recorder():
    return ReminderRecorder()


@pytest.fixture
# pylint: disable-next=redefined-outer-name
def scheduler(timers, recorder):
    return ReminderScheduler(FixedClock(NOW), recorder, timer_factory=timers)


# pylint: disable-next=redefined-outer-name
def test_reminder_due_already_fires_immediately(scheduler, recorder, timers):
    scheduler.schedule_reminder(notice_starting_in(3))
    assert recorder.reminded == ["r-1"]
    assert timers.timers == []
    assert scheduler.pending("r-1") == []


# pylint: disable-next=redefined-outer-name
def test_reminder_exactly_due_fires_immediately(scheduler, recorder):
    scheduler.schedule_reminder(notice_starting_in(5))
    assert recorder.reminded == ["r-1"]


# pylint: disable-next=redefined-outer-name
def test_reminder_waits_for_five_minutes_before_start(scheduler, recorder, timers):
    scheduler.schedule_reminder(notice_starting_in(60))
    assert recorder.reminded == []
    assert scheduler.pending("r-1") == ["reminder"]

    [timer] = timers.live()
    assert timer.delay == 55 * 60

    timer.fire()
    assert recorder.reminded == ["r-1"]
    assert scheduler.pending("r-1") == []

    # a timer callback running twice still sends once
    timer.callback()
    assert recorder.reminded == ["r-1"]


# pylint: disable-next=redefined-outer-name
def test_scheduling_twice_replaces_the_pending_reminder(scheduler, recorder, timers):
    scheduler.schedule_reminder(notice_starting_in(60))
    scheduler.schedule_reminder(notice_starting_in(60))

    first, second = timers.timers
    assert first.cancelled
    assert timers.live() == [second]

    # the replaced timer going off anyway does nothing
    first.callback()
    second.fire()
    assert recorder.reminded == ["r-1"]


# pylint: disable-next=redefined-outer-name
def test_cancel_is_a_no_op_when_nothing_is_pending(scheduler, recorder, timers):
    scheduler.cancel_reminder("unknown")

    scheduler.schedule_reminder(notice_starting_in(60))
    [timer] = timers.live()
    timer.fire()
    scheduler.cancel_reminder("r-1")
    assert recorder.reminded == ["r-1"]


# pylint: disable-next=redefined-outer-name
def test_cancelled_reminder_never_fires(scheduler, recorder, timers):
    scheduler.schedule_reminder(notice_starting_in(60))
    scheduler.cancel_reminder("r-1")
    [timer] = timers.timers
    assert timer.cancelled
    timer.callback()
    assert recorder.reminded == []


# pylint: disable-next=redefined-outer-name
def test_deadline_and_reminder_are_independent(scheduler, timers):
    expired = []
    scheduler.schedule_reminder(notice_starting_in(60))
    scheduler.schedule_deadline("r-1", NOW + timedelta(minutes=75), expired.append)
    assert scheduler.pending("r-1") == ["deadline", "reminder"]

    scheduler.cancel_reminder("r-1")
    assert scheduler.pending("r-1") == ["deadline"]

    [deadline_timer] = timers.live()
    assert deadline_timer.delay == 75 * 60
    deadline_timer.fire()
    assert expired == ["r-1"]


# pylint: disable-next=redefined-outer-name
def test_failing_deadline_action_is_contained(scheduler, timers):
    def explode(reservation_id):
        raise RuntimeError(reservation_id)

    scheduler.schedule_deadline("r-1", NOW + timedelta(minutes=75), explode)
    [deadline_timer] = timers.live()
    deadline_timer.fire()
    assert scheduler.pending("r-1") == []


# pylint: disable-next=redefined-outer-name
def test_notifier_failure_is_logged_not_raised(timers):
    scheduler = ReminderScheduler(FixedClock(NOW), FailingNotifier(), timer_factory=timers)
    scheduler.schedule_reminder(notice_starting_in(3))

    scheduler.schedule_reminder(notice_starting_in(60, reservation_id="r-2"))
    [timer] = timers.live()
    timer.fire()
    assert scheduler.pending("r-2") == []


# pylint: disable-next=redefined-outer-name
def test_shutdown_cancels_everything(scheduler, timers):
    scheduler.schedule_reminder(notice_starting_in(60, reservation_id="r-1"))
    scheduler.schedule_reminder(notice_starting_in(90, reservation_id="r-2"))
    scheduler.shutdown()
    assert timers.live() == []
    assert scheduler.pending("r-1") == scheduler.pending("r-2") == []


def test_threading_timer_fires_once():
    notifier = ReminderRecorder()
    created = []

    def factory(delay, callback):
        timer = threading.Timer(delay, callback)
        created.append(timer)
        return timer

    # reminder due 50ms from now
    scheduler = ReminderScheduler(FixedClock(NOW - timedelta(seconds=0.05)), notifier, timer_factory=factory)
    scheduler.schedule_reminder(notice_starting_in(5))

    [timer] = created
    assert timer.daemon
    timer.join(timeout=2)
    assert notifier.reminded == ["r-1"]
    assert scheduler.pending("r-1") == []
