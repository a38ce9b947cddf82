import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from roomreserve.utils.clock import combine, parse_date


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationNotice:
    """Snapshot of a reservation with the user and room details a message needs."""

    reservation_id: str
    date: str
    start_time: str
    end_time: str
    purpose: Optional[str]
    user_email: str
    user_name: str
    room_name: str
    building: str
    floor: int

    @classmethod
    def from_reservation(cls, reservation):
        return cls(
            reservation_id=reservation.id,
            date=reservation.date,
            start_time=reservation.start_time,
            end_time=reservation.end_time,
            purpose=reservation.purpose,
            user_email=reservation.user.email,
            user_name=reservation.user.name,
            room_name=reservation.room.name,
            building=reservation.room.building,
            floor=reservation.room.floor,
        )

    @property
    def starts_at(self) -> datetime:
        return combine(self.date, self.start_time)


@dataclass(frozen=True)
class Message:
    to: str
    subject: str
    body: str


def format_room_details(notice: ReservationNotice) -> str:
    pretty_date = parse_date(notice.date).strftime("%b %d, %Y")
    lines = [
        f"Room: {notice.room_name}",
        f"Building/Floor: {notice.building}, Floor {notice.floor}",
        f"Date: {pretty_date}",
        f"Time: {notice.start_time} - {notice.end_time}",
    ]
    if notice.purpose:
        lines.append(f"Purpose: {notice.purpose}")
    return "\n".join(lines)


class Notifier:
    """Composes reservation and account messages and hands them to ``deliver``, which only logs."""

    def deliver(self, message: Message):
        logger.info(f"(log-only) would send email to {message.to}: {message.subject}")
        logger.debug(message.body)

    def send_confirmation(self, notice: ReservationNotice):
        body = "\n".join([
            "Room reserved! Please make sure to be in the room within 15-minutes of your scheduled time slot.",
            "",
            "[ROOM DETAILS]",
            format_room_details(notice),
        ])
        self.deliver(Message(to=notice.user_email, subject="Room reserved!", body=body))

    def send_reminder(self, notice: ReservationNotice):
        body = "\n".join([
            "Please confirm your successful check-in for your reserved room within 15 minutes of your given time slot.",
            "",
            "[ROOM DETAILS]",
            format_room_details(notice),
        ])
        self.deliver(Message(to=notice.user_email, subject="Reminder: Please confirm check-in", body=body))

    def send_password_reset(self, email: str, first_name: str, reset_link: str):
        body = "\n".join([
            f"Hi {first_name},",
            "",
            "We received a request to reset your RoomReserve password. The link below is valid for one hour:",
            reset_link,
            "",
            "If you did not ask for this, you can ignore this email.",
        ])
        self.deliver(Message(to=email, subject="Reset your RoomReserve password", body=body))
