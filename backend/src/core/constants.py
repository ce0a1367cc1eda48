"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_NOTES_LENGTH = 1000
MAX_ACTIVITY_LENGTH = 255

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # React dev server (Vite)
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Appointment lifecycle
APPOINTMENT_STATUS_PENDING = "pending"
APPOINTMENT_STATUS_CONFIRMED = "confirmed"
APPOINTMENT_STATUS_COMPLETED = "completed"
APPOINTMENT_STATUS_CANCELLED = "cancelled"
APPOINTMENT_STATUSES = (
    APPOINTMENT_STATUS_PENDING,
    APPOINTMENT_STATUS_CONFIRMED,
    APPOINTMENT_STATUS_COMPLETED,
    APPOINTMENT_STATUS_CANCELLED,
)

# Services offered at booking time (at most two per appointment)
VACCINE_TYPES = ("covid", "grippe")
MAX_SERVICES_PER_APPOINTMENT = 2

# Patients
PATIENT_STATUSES = ("active", "inactive")

# Staff roles
STAFF_ROLES = ("admin", "staff")

# Appointment duration used for calendar invites (one catalog step)
DEFAULT_APPOINTMENT_DURATION_MINUTES = 15

# Confirmation email
CONFIRMATION_EMAIL_SUBJECT = "Confirmation de votre rendez-vous pour la vaccination."
CALENDAR_INVITE_FILENAME = "rendez-vous.ics"
