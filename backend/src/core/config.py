"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # backend/.env (when run from backend/src)
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # repository root
        pathlib.Path.cwd() / ".env",
        pathlib.Path.cwd().parent / ".env",
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def get_database_url():
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "postgresql://localhost/vaccination_booking_dev"
    )

DATABASE_URL = get_database_url()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Authentication
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Slot catalog: first slot, last slot (inclusive) and step
SLOT_DAY_START = os.getenv("SLOT_DAY_START", "09:00")
SLOT_DAY_END = os.getenv("SLOT_DAY_END", "17:00")
SLOT_STEP_MINUTES = int(os.getenv("SLOT_STEP_MINUTES", "15"))

# Availability persistence and booking window
AVAILABILITY_SYNC_CHUNK_SIZE = int(os.getenv("AVAILABILITY_SYNC_CHUNK_SIZE", "100"))
BOOKING_WINDOW_MONTHS = int(os.getenv("BOOKING_WINDOW_MONTHS", "6"))
LOCAL_TIMEZONE = os.getenv("LOCAL_TIMEZONE", "Europe/Brussels")

# Confirmation emails
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "info@pharmacy.example")
PHARMACY_NAME = os.getenv("PHARMACY_NAME", "Pharmacie")
PHARMACY_ADDRESS = os.getenv("PHARMACY_ADDRESS", "")
PHARMACY_PHONE = os.getenv("PHARMACY_PHONE", "")
