import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List, Optional
from roomreserve.db import get_db
from roomreserve.models.reservation import Reservation
from roomreserve.models.review import RoomReview
from roomreserve.models.room import Room
from roomreserve.routers.reservations import to_response
from roomreserve.schemas.reservation import ReservationResponse
from roomreserve.schemas.review import ReviewCreate, ReviewResponse, RoomReviewsResponse
from roomreserve.schemas.room import (
    RoomCreate,
    RoomResponse,
    RoomStatusResponse,
    RoomUpdate,
    RoomWithStatusResponse,
)
from roomreserve.services.availability import RoomStatus
from roomreserve.services.engine import ReservationEngine, get_engine
from roomreserve.utils.auth import get_current_admin, get_current_user
from roomreserve.utils.clock import parse_date
from roomreserve.utils.errors import ValidationError


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


def get_room_or_404(db: Session, room_id: str) -> Room:
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


def status_payload(room_status: RoomStatus, engine: ReservationEngine) -> dict:
    current = room_status.current_reservation
    return {
        "occupied": room_status.occupied,
        "current_reservation": {
            "id": current.id,
            "start_time": current.start_time,
            "end_time": current.end_time,
            "status": engine.status_of(current).value,
        } if current else None,
        "next_available_time": room_status.next_available_time,
    }


def room_with_status(room: Room, room_status: RoomStatus, engine: ReservationEngine) -> RoomWithStatusResponse:
    return RoomWithStatusResponse(
        **RoomResponse.model_validate(room).model_dump(),
        **status_payload(room_status, engine),
    )


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(room: RoomCreate, db: Session = Depends(get_db), current_user: dict = Depends(get_current_admin)):
    """
    Create a new room.
    Requires admin rights.
    """
    db_room = Room(**room.model_dump())
    db.add(db_room)
    db.commit()
    db.refresh(db_room)
    return db_room


@router.get("/", response_model=List[RoomWithStatusResponse])
def get_rooms(
    date: Optional[str] = None,
    time: Optional[str] = None,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """
    Retrieve active rooms with their occupancy at ``date``/``time`` (default: now).
    """
    return [
        room_with_status(room, room_status, engine)
        for room, room_status in engine.rooms_with_status(db, date, time)
    ]


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: str, db: Session = Depends(get_db)):
    """
    Retrieve a specific room by ID.
    """
    return get_room_or_404(db, room_id)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(room_id: str, room_update: RoomUpdate, db: Session = Depends(get_db),
                current_user: dict = Depends(get_current_admin)):
    """
    Update a room's details, e.g. take it out of service with ``is_active``.
    Requires admin rights.
    """
    db_room = get_room_or_404(db, room_id)

    update_data = room_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_room, key, value)

    db.commit()
    db.refresh(db_room)
    return db_room


@router.get("/{room_id}/status", response_model=RoomStatusResponse)
def get_room_status(
    room_id: str,
    date: Optional[str] = None,
    time: Optional[str] = None,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """
    Whether the room is occupied at ``date``/``time`` (default: now), and the
    end of its next reservation.
    """
    get_room_or_404(db, room_id)
    return status_payload(engine.room_status(db, room_id, date, time), engine)


@router.get("/{room_id}/reservations", response_model=List[ReservationResponse])
def get_room_reservations(
    room_id: str,
    date: str,
    db: Session = Depends(get_db),
    engine: ReservationEngine = Depends(get_engine),
):
    """
    All reservations of a room on a day, any status, ordered by start time.
    """
    try:
        parse_date(date)
    except ValueError as e:
        raise ValidationError(str(e))
    get_room_or_404(db, room_id)
    reservations = (
        db.query(Reservation)
        .filter(Reservation.room_id == room_id, Reservation.date == date)
        .order_by(Reservation.start_time)
        .all()
    )
    return [to_response(r, engine) for r in reservations]


@router.get("/{room_id}/reviews", response_model=RoomReviewsResponse)
def get_room_reviews(room_id: str, db: Session = Depends(get_db)):
    """
    Reviews of a room, newest first, with the average rating (null without reviews).
    """
    get_room_or_404(db, room_id)
    reviews = (
        db.query(RoomReview)
        .filter(RoomReview.room_id == room_id)
        .order_by(RoomReview.created_at.desc())
        .all()
    )
    average = db.query(func.avg(RoomReview.rating)).filter(RoomReview.room_id == room_id).scalar()
    return {
        "average_rating": round(float(average), 2) if average is not None else None,
        "count": len(reviews),
        "reviews": reviews,
    }


@router.post("/{room_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_room_review(
    room_id: str,
    review: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Rate a room from 1 to 5 with an optional comment.
    Requires authentication.
    """
    get_room_or_404(db, room_id)
    db_review = RoomReview(room_id=room_id, user_id=current_user["id"], **review.model_dump())
    db.add(db_review)
    db.commit()
    db.refresh(db_review)
    logger.debug(f"User {current_user['student_id']} rated room {room_id}: {db_review.rating}")
    return db_review
