"""
config.py

Single source of truth for:
- Environment variable reads
- Request status vocabulary shared by the store and the routers

Nothing here should contain route handlers or business logic beyond config resolution.
"""

import os


# =====================================================================
# SECTION: ENV VARS
# =====================================================================

# Amadeus self-service / enterprise API
AMADEUS_API_BASE = (os.getenv("AMADEUS_API_BASE") or "https://test.travel.api.amadeus.com").strip().rstrip("/")
AMADEUS_CLIENT_ID = os.getenv("AMADEUS_CLIENT_ID", "")
AMADEUS_CLIENT_SECRET = os.getenv("AMADEUS_CLIENT_SECRET", "")
AMADEUS_TIMEOUT_SECONDS = int(os.getenv("AMADEUS_TIMEOUT_SECONDS", "45"))

# SMTP / notifications
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
NOTIFY_FROM_EMAIL = os.getenv("NOTIFY_FROM_EMAIL") or SMTP_USERNAME
NOTIFY_FROM_NAME = os.getenv("NOTIFY_FROM_NAME", "Flight Notifier")
NOTIFY_TEST_EMAIL = os.getenv("NOTIFY_TEST_EMAIL")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# =====================================================================
# SECTION: STATUS VOCABULARY
# =====================================================================

# Persisted row statuses. The dashboard may set any of these.
REQUEST_STATUSES = ("active", "held", "queued", "success", "error")

# Dashboard filter value meaning "no status filter"
STATUS_FILTER_ALL = "All"


def smtp_configured() -> bool:
    return bool(SMTP_USERNAME and SMTP_PASSWORD and NOTIFY_FROM_EMAIL)
