from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from roomreserve.db import get_db
from roomreserve.routers.rooms import room_with_status
from roomreserve.schemas.room import HotspotResponse, RoomWithStatusResponse
from roomreserve.services.engine import ReservationEngine, get_engine
from roomreserve.services.recommendations import recommend_rooms


router = APIRouter(tags=["insights"])


@router.get("/hotspots", response_model=List[HotspotResponse])
def get_hotspots(
    date: Optional[str] = None,
    time: Optional[str] = None,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """Occupied and total rooms per building floor, busiest first."""
    return engine.hotspots(db, date, time)


@router.get("/recommendations", response_model=List[RoomWithStatusResponse])
def get_recommendations(
    purpose: Optional[str] = None,
    group_size: Optional[int] = Query(default=None, gt=0),
    date: Optional[str] = None,
    time: Optional[str] = None,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """
    Up to ten rooms ranked by availability, fit to the group size and
    amenities matching the purpose.
    """
    rooms = engine.rooms_with_status(db, date, time)
    return [
        room_with_status(room, room_status, engine)
        for room, room_status in recommend_rooms(rooms, purpose, group_size)
    ]
