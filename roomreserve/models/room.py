import uuid
from sqlalchemy.orm import relationship
from sqlalchemy import Boolean, Column, Integer, JSON, String
from roomreserve.db import Base


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, index=True, nullable=False)
    building = Column(String, nullable=False, default="JGSOM")
    floor = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False)
    amenities = Column(JSON, nullable=False, default=list)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    reservations = relationship(
        "Reservation", back_populates="room", cascade="all, delete-orphan"
    )
    reviews = relationship(
        "RoomReview", back_populates="room", cascade="all, delete-orphan"
    )
