import uuid
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, String, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
from roomreserve.db import Base


class ReservationStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


ACTIVE_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN)


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_room_date", "room_id", "date"),
        Index("ix_reservations_user_date", "user_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    room_id = Column(String(36), ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    purpose = Column(String, nullable=True)
    status = Column(
        Enum(
            ReservationStatus,
            name="reservation_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=ReservationStatus.PENDING,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    check_in_deadline = Column(DateTime, nullable=True)
    checked_in_at = Column(DateTime, nullable=True)

    room = relationship("Room", back_populates="reservations")
    user = relationship("User", back_populates="reservations")
