import logging
from sqlalchemy.orm import Session
from roomreserve import config
from roomreserve.models.room import Room
from roomreserve.models.user import User
from roomreserve.utils.auth import get_password_hash


logger = logging.getLogger(__name__)

SAMPLE_ROOMS = [
    {"name": "Room 201", "floor": 2, "capacity": 30, "amenities": ["WiFi", "Projector", "Air Conditioning", "Whiteboard"]},
    {"name": "Room 202", "floor": 2, "capacity": 25, "amenities": ["WiFi", "Air Conditioning", "Whiteboard"]},
    {"name": "Room 301", "floor": 3, "capacity": 40, "amenities": ["WiFi", "Projector", "Air Conditioning", "Smart TV"]},
    {"name": "Room 302", "floor": 3, "capacity": 35, "amenities": ["WiFi", "Air Conditioning", "Whiteboard"]},
    {"name": "Room 303", "floor": 3, "capacity": 20, "amenities": ["WiFi", "Projector", "Air Conditioning"]},
    {"name": "Room 401", "floor": 4, "capacity": 50, "amenities": ["WiFi", "Projector", "Air Conditioning", "Smart TV", "Whiteboard"]},
]


def seed_database(db: Session):
    """Insert the admin account and the sample rooms; rows that already exist are left alone."""
    if not db.query(User).filter(User.student_id == config.ADMIN_STUDENT_ID).first():
        domain = config.ALLOWED_EMAIL_DOMAIN or "roomreserve.local"
        db.add(User(
            student_id=config.ADMIN_STUDENT_ID,
            email=f"admin@{domain}",
            first_name="Admin",
            last_name="User",
            name="Admin User",
            hashed_password=get_password_hash(config.ADMIN_PASSWORD),
            is_admin=True,
        ))
        logger.info(f"Seeded admin user {config.ADMIN_STUDENT_ID}")

    created = 0
    for data in SAMPLE_ROOMS:
        exists = db.query(Room).filter(
            Room.building == "JGSOM", Room.floor == data["floor"], Room.name == data["name"]
        ).first()
        if not exists:
            db.add(Room(building="JGSOM", **data))
            created += 1
    db.commit()
    logger.info(f"Seeded {created} rooms")
