import os
from dotenv import load_dotenv


load_dotenv()

DATABASE_URL = os.getenv("ROOMRESERVE_DATABASE_URL", "sqlite:///./data/roomreserve.db")

# JWT configuration
SECRET_KEY = os.getenv("ROOMRESERVE_SECRET_KEY", "roomreserve-dev-secret-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ROOMRESERVE_TOKEN_EXPIRE_MINUTES", "720"))

LOG_LEVEL = os.getenv("ROOMRESERVE_LOG_LEVEL", "INFO").upper()

# Signups are restricted to this mail domain; empty allows any
ALLOWED_EMAIL_DOMAIN = os.getenv("ROOMRESERVE_EMAIL_DOMAIN", "student.ateneo.edu")

SEED_DATABASE = os.getenv("ROOMRESERVE_SEED", "0") == "1"
ADMIN_STUDENT_ID = os.getenv("ROOMRESERVE_ADMIN_STUDENT_ID", "200000")
ADMIN_PASSWORD = os.getenv("ROOMRESERVE_ADMIN_PASSWORD", "admin-password")

# Password reset links point at the web client
APP_BASE_URL = os.getenv("ROOMRESERVE_APP_BASE_URL", "http://localhost:8000")
RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("ROOMRESERVE_RESET_TOKEN_EXPIRE_MINUTES", "60"))
