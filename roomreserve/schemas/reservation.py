from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from roomreserve.models.reservation import ReservationStatus
from roomreserve.schemas.room import RoomResponse
from roomreserve.schemas.user import UserResponse


class ReservationCreate(BaseModel):
    # formats are checked by the booking policy so they fail with a 400, not a 422
    room_id: str
    date: str
    start_time: str
    end_time: str
    purpose: Optional[str] = None


class ReservationResponse(BaseModel):
    id: str
    user_id: str
    room_id: str
    date: str
    start_time: str
    end_time: str
    purpose: Optional[str] = None
    status: ReservationStatus
    created_at: datetime
    check_in_deadline: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReservationDetailsResponse(ReservationResponse):
    user: UserResponse
    room: RoomResponse


class MessageResponse(BaseModel):
    message: str
