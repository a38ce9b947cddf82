from datetime import datetime

from roomreserve.services.availability import hotspots, rooms_with_status, status_at

from tests.conf_tests import (
    NOW,
    TODAY,
    clear_db,
    clock,
    make_room,
    make_user,
    notifier,
    reservation_engine,
    test_db,
    test_room,
    timers,
)


def book(engine, db, room, start_time, end_time, date=TODAY):
    user = make_user(db)
    return engine.create_reservation(db, user.id, room.id, date, start_time, end_time)


# pylint: disable-next=redefined-outer-name
def test_free_room(test_db, test_room):
    room_status = status_at(test_db, test_room.id, TODAY, "13:00", NOW)
    assert not room_status.occupied
    assert room_status.current_reservation is None
    assert room_status.next_available_time is None


# pylint: disable-next=redefined-outer-name
def test_occupied_room_and_next_available_time(reservation_engine, test_db, test_room):
    current = book(reservation_engine, test_db, test_room, "13:00", "14:00")
    book(reservation_engine, test_db, test_room, "14:00", "15:00")
    book(reservation_engine, test_db, test_room, "16:00", "17:00")

    room_status = status_at(test_db, test_room.id, TODAY, "13:30", NOW)
    assert room_status.occupied
    assert room_status.current_reservation.id == current.id
    assert room_status.next_available_time == "15:00"


# pylint: disable-next=redefined-outer-name
def test_interval_is_half_open(reservation_engine, test_db, test_room):
    reservation = book(reservation_engine, test_db, test_room, "13:00", "14:00")

    assert status_at(test_db, test_room.id, TODAY, "13:00", NOW).current_reservation.id == reservation.id
    assert status_at(test_db, test_room.id, TODAY, "13:59", NOW).occupied
    assert not status_at(test_db, test_room.id, TODAY, "14:00", NOW).occupied


# pylint: disable-next=redefined-outer-name
def test_cancelled_and_overdue_reservations_do_not_occupy(reservation_engine, test_db, test_room):
    cancelled = book(reservation_engine, test_db, test_room, "13:00", "14:00")
    reservation_engine.cancel(test_db, cancelled.id, cancelled.user_id)
    assert not status_at(test_db, test_room.id, TODAY, "13:30", NOW).occupied

    book(reservation_engine, test_db, test_room, "14:00", "16:00")
    assert status_at(test_db, test_room.id, TODAY, "14:30", datetime(2024, 6, 1, 14, 10)).occupied
    # nobody checked in by 14:15
    assert not status_at(test_db, test_room.id, TODAY, "14:30", datetime(2024, 6, 1, 14, 30)).occupied


# pylint: disable-next=redefined-outer-name
def test_rooms_with_status_skips_duplicates_and_inactive(test_db, test_room):
    make_room(test_db, name=test_room.name, floor=test_room.floor)
    make_room(test_db, name="Closed", is_active=False)
    other = make_room(test_db, name="Room 301", floor=3)

    rooms = rooms_with_status(test_db, TODAY, "13:00", NOW)
    names = [room.name for room, _ in rooms]
    assert names == [test_room.name, other.name]


# pylint: disable-next=redefined-outer-name
def test_hotspots_sorted_by_occupancy(reservation_engine, test_db):
    second_a = make_room(test_db, name="Room 201", floor=2)
    second_b = make_room(test_db, name="Room 202", floor=2)
    make_room(test_db, name="Room 203", floor=2)
    third_a = make_room(test_db, name="Room 301", floor=3)
    make_room(test_db, name="Room 401", floor=4)
    book(reservation_engine, test_db, third_a, "13:00", "14:00")
    book(reservation_engine, test_db, second_a, "15:00", "16:00")

    buckets = hotspots(test_db, TODAY, "13:30", NOW)
    assert buckets == [
        {"building": "JGSOM", "floor": 3, "occupied": 1, "total": 1, "ratio": 1.0},
        {"building": "JGSOM", "floor": 2, "occupied": 0, "total": 3, "ratio": 0.0},
        {"building": "JGSOM", "floor": 4, "occupied": 0, "total": 1, "ratio": 0.0},
    ]

    # same occupied count, the smaller floor is busier
    book(reservation_engine, test_db, second_b, "13:00", "14:00")
    buckets = hotspots(test_db, TODAY, "13:30", NOW)
    assert [(b["floor"], b["occupied"], b["ratio"]) for b in buckets] == [(3, 1, 1.0), (2, 1, 0.3333), (4, 0, 0.0)]
