from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from roomreserve.models.reservation import ACTIVE_STATUSES, Reservation
from roomreserve.models.room import Room
from roomreserve.services.conflicts import active_reservations
from roomreserve.services.state_machine import effective_status


@dataclass
class RoomStatus:
    occupied: bool
    current_reservation: Optional[Reservation] = None
    next_available_time: Optional[str] = None


def status_at(db: Session, room_id: str, date: str, time: str, now: datetime) -> RoomStatus:
    """
    Occupancy of a room at ``date``/``time``.

    A reservation occupies ``[start_time, end_time)``, so one that ends exactly
    at ``time`` has already freed the room. ``next_available_time`` is the end of
    the earliest active reservation starting at or after ``time``.
    """
    reservations = [
        r for r in active_reservations(db, room_id, date)
        if effective_status(r, now) in ACTIVE_STATUSES
    ]
    current = next((r for r in reservations if r.start_time <= time < r.end_time), None)
    upcoming = next((r for r in reservations if r.start_time >= time), None)
    return RoomStatus(
        occupied=current is not None,
        current_reservation=current,
        next_available_time=upcoming.end_time if upcoming else None,
    )


def rooms_with_status(db: Session, date: str, time: str, now: datetime) -> List[Tuple[Room, RoomStatus]]:
    """Active rooms with their status, keeping the first of any building/floor/name duplicates."""
    rooms = db.query(Room).filter(Room.is_active.is_(True)).order_by(Room.building, Room.floor, Room.name).all()
    seen = set()
    result = []
    for room in rooms:
        key = (room.building, room.floor, room.name)
        if key in seen:
            continue
        seen.add(key)
        result.append((room, status_at(db, room.id, date, time, now)))
    return result


def hotspots(db: Session, date: str, time: str, now: datetime) -> List[Dict]:
    """Occupied/total room counts and their ratio per building and floor, busiest first."""
    buckets: Dict[Tuple[str, int], Dict] = {}
    for room, room_status in rooms_with_status(db, date, time, now):
        key = (room.building, room.floor)
        bucket = buckets.setdefault(key, {"building": room.building, "floor": room.floor, "occupied": 0, "total": 0})
        bucket["total"] += 1
        if room_status.occupied:
            bucket["occupied"] += 1
    for bucket in buckets.values():
        bucket["ratio"] = round(bucket["occupied"] / bucket["total"], 4)
    return sorted(buckets.values(), key=lambda b: b["ratio"], reverse=True)
