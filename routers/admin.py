"""routers/admin.py - Health checks, route listing, test email routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException

router = APIRouter()


# =====================================================================
# SECTION: HEALTH AND DEBUG ROUTES
# =====================================================================

@router.get("/")
def home():
    return {"message": "Flight hold backend is running"}


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/routes")
def list_routes_handler():
    # Imported lazily to avoid circular import
    from main import app
    return [route.path for route in app.routes]


# =====================================================================
# SECTION: TEST EMAILS
# =====================================================================

@router.get("/test-email-pnr")
def test_email_pnr(email: Optional[str] = None):
    from config import NOTIFY_TEST_EMAIL
    from pnr_email import send_pnr_email

    to = email or NOTIFY_TEST_EMAIL
    if not to:
        raise HTTPException(status_code=400, detail="No recipient, pass ?email= or set NOTIFY_TEST_EMAIL")

    dummy_booking = {
        "data": {
            "associatedRecords": [{"reference": "TEST01"}],
            "flightOffers": [
                {
                    "itineraries": [
                        {
                            "segments": [
                                {
                                    "id": "1",
                                    "carrierCode": "EK",
                                    "number": "511",
                                    "departure": {"iataCode": "DEL", "at": "2025-01-10T04:25:00"},
                                    "arrival": {"iataCode": "DXB", "at": "2025-01-10T06:55:00"},
                                    "aircraft": {"code": "77W"},
                                }
                            ]
                        }
                    ],
                    "price": {"total": "412.50", "currency": "USD"},
                }
            ],
            "travelers": [
                {
                    "name": {"firstName": "JANE", "lastName": "DOE"},
                    "dateOfBirth": "1990-01-01",
                    "gender": "FEMALE",
                }
            ],
        }
    }

    sent = send_pnr_email(to, "TEST01", dummy_booking)
    if not sent:
        raise HTTPException(status_code=500, detail="Test PNR email could not be sent, see server log")
    return {"detail": f"Test PNR email sent to {to}"}
