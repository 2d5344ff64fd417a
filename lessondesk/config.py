import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./lessondesk.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Booking lifecycle
# Pending bookings older than this are declined lazily on read
BOOKING_PENDING_TTL_HOURS = int(os.getenv("BOOKING_PENDING_TTL_HOURS", "24"))

# Automation gating
# Channels the drafting assistant is allowed to participate in
AI_ALLOWED_CHANNELS = [
    c.strip() for c in os.getenv("AI_ALLOWED_CHANNELS", "whatsapp").split(",") if c.strip()
]
# Kill-switch value when no feature flag row exists (off unless explicitly enabled)
AI_ENABLED_DEFAULT = os.getenv("AI_ENABLED_DEFAULT", "false").lower() == "true"
# Classifier confidence below this blocks automation and requires a human
AI_MIN_CLASSIFIER_CONFIDENCE = float(os.getenv("AI_MIN_CLASSIFIER_CONFIDENCE", "0.6"))

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
