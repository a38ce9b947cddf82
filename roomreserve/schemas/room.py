from pydantic import BaseModel, Field
from typing import List, Optional


class RoomBase(BaseModel):
    name: str
    building: str = "JGSOM"
    floor: int
    capacity: int = Field(gt=0)
    amenities: List[str] = []
    image_url: Optional[str] = None


class RoomCreate(RoomBase):
    is_active: bool = True


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    building: Optional[str] = None
    floor: Optional[int] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    amenities: Optional[List[str]] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class RoomResponse(RoomBase):
    id: str
    is_active: bool

    class Config:
        from_attributes = True


class CurrentReservation(BaseModel):
    id: str
    start_time: str
    end_time: str
    status: str


class RoomStatusResponse(BaseModel):
    occupied: bool
    current_reservation: Optional[CurrentReservation] = None
    next_available_time: Optional[str] = None


class RoomWithStatusResponse(RoomResponse):
    occupied: bool
    current_reservation: Optional[CurrentReservation] = None
    next_available_time: Optional[str] = None


class HotspotResponse(BaseModel):
    building: str
    floor: int
    occupied: int
    total: int
    ratio: float
