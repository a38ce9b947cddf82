from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class Reviewer(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: str
    room_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    user: Reviewer

    class Config:
        from_attributes = True


class RoomReviewsResponse(BaseModel):
    average_rating: Optional[float] = None
    count: int
    reviews: List[ReviewResponse]
