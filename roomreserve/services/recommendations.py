import re
from typing import Iterable, List, Optional, Tuple
from roomreserve.models.room import Room
from roomreserve.services.availability import RoomStatus

QUIET_PURPOSE = re.compile(r"study|review|quiet", re.IGNORECASE)
COLLAB_PURPOSE = re.compile(r"tambay|group|collab|meeting", re.IGNORECASE)
QUIET_AMENITIES = re.compile(r"Air Conditioning|Whiteboard|Smart TV", re.IGNORECASE)
COLLAB_AMENITIES = re.compile(r"WiFi|Projector|Smart TV", re.IGNORECASE)

RECOMMENDATION_LIMIT = 10


def score_room(capacity: int, amenities: Iterable[str], available: bool,
               purpose: Optional[str] = None, group_size: Optional[int] = None) -> int:
    """
    Score how well a room suits a request; higher is better.
    Free rooms get 100, capacity close to the group size up to 50, and a
    purpose hinting at quiet study or group work adds 10 for matching amenities.
    """
    score = 0
    if available:
        score += 100
    if group_size is not None and group_size > 0:
        score += max(0, 50 - abs((capacity or 0) - group_size))
    amenities = list(amenities or [])
    if purpose and QUIET_PURPOSE.search(purpose) and any(QUIET_AMENITIES.search(a) for a in amenities):
        score += 10
    if purpose and COLLAB_PURPOSE.search(purpose) and any(COLLAB_AMENITIES.search(a) for a in amenities):
        score += 10
    return score


def recommend_rooms(rooms: List[Tuple[Room, RoomStatus]], purpose: Optional[str] = None,
                    group_size: Optional[int] = None, limit: int = RECOMMENDATION_LIMIT):
    scored = [
        (score_room(room.capacity, room.amenities, not room_status.occupied, purpose, group_size), room, room_status)
        for room, room_status in rooms
    ]
    # sorted() is stable, equal scores keep the incoming room order
    scored = sorted(scored, key=lambda item: item[0], reverse=True)
    return [(room, room_status) for _, room, room_status in scored[:limit]]
